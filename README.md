# themekit

A Python library for working on storefront themes from a local directory. It
decides which files belong to a theme, watches them for changes, reads and
writes theme assets, packs a theme template into an importable bundle, and
checks for, installs and publishes releases of a program binary.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `themekit.paths`: maps file paths onto theme asset keys.
  `path_to_project(root, filename)` returns the key (such as
  `templates/customers/test.liquid`) or an empty string for files outside the
  theme's asset directories; `is_project_directory` and `path_in_project`
  answer yes/no questions about a path.
- `themekit.filters`: `new_filter(root_dir, patterns, files)` builds a
  `Filter` from glob patterns, `/regex/` patterns and ignore files (one
  pattern per line, `#` for comments). `Filter.match(path)` returns `True`
  when the path is ignored, including paths outside the theme and the
  built-in defaults such as `.git`, `node_modules` and `config.yml`.
  `glob_match` is the `*`-only glob used for patterns.
- `themekit.checksum`: MD5 checksums of single files (`file_checksum`) and
  of every file in a theme directory, keyed by asset key (`dir_sums`).
- `themekit.watcher`: `Watcher(directory, ignored_files, ignores, notify,
  config_path)` polls a theme directory in background threads after
  `watch()` and puts debounced `Event`s (`Op.UPDATE`, `Op.REMOVE`) on its
  `events` queue for files whose contents actually changed. When the
  directory has been quiet for a while it touches the `notify` file, if one
  was given. `stop()` ends watching.
- `themekit.asset`: `Asset` holds a theme file. `read_asset(directory,
  filename)` reads one file (text as `value`, binary as a base64
  `attachment`); `find_assets(directory, paths, ignored_files, ignores)`
  lists the asset keys for files and directories, or for the whole project
  when no paths are given; `Asset.write(directory)` writes the file back,
  re-indenting `.json` values. `to_json` / `from_json` convert to and from
  the API form.
- `themekit.bundle`: `bundle(src, dst)` zips a template directory and
  writes a Python module to `dst` that registers the archive when imported.
- `themekit.unbundle`: `register(data)` sets the archive and
  `unbundle(directory, log)` extracts it, never overwriting files that
  already exist and reporting each directory and file as created or
  existing.
- `themekit.release`: `Version`, `Release`, `Platform` and `ReleaseList`
  model the release feed. `is_update_available()`, `install(ver)` (a
  version or `"latest"`), `update(key, secret, ver, force)` and
  `remove(key, secret, ver)` check, install, publish and withdraw releases.
- `themekit.uploader`: `S3Uploader` and `new_s3_uploader(key, secret)`
  upload release files and feed documents to the release bucket with signed
  requests.

## Example

```python
from themekit.asset import find_assets, read_asset
from themekit.filters import new_filter
from themekit.watcher import Watcher

ignored = new_filter("my-theme", ["*.png", "/\\.bak$/"], [])
print(ignored.match("my-theme/assets/logo.png"))  # True

for key in find_assets("my-theme", [], ["config/settings_data.json"], []):
    asset = read_asset("my-theme", key)
    asset.write("copy-of-theme")

watcher = Watcher("my-theme", ignored_files=["config/"])
watcher.watch()
event = watcher.events.get()
print(event.op, event.path)
watcher.stop()
```

## What this package does not do

It has no client for a store's theme API: nothing here lists, creates or
publishes themes on a store, or uploads, downloads or deletes remote assets,
and there is no rate limiting of API calls. Assets are only read from and
written to local directories. There is also no command-line program; every
feature is used by calling the library from Python.