# wxapkg

A command-line tool that finds WeChat mini programs on disk, decrypts their
`.wxapkg` packages and extracts the files inside. Extracted `.js`, `.html`
and `.json` files are re-indented unless beautification is switched off.

## Installation

```
pip install .
```

This installs the `wxapkg` command.

## Commands

### `wxapkg unpack`

```
wxapkg unpack -r "/path/to/Applet/wx0123456789abcdef" -o unpack -n 30
```

| Option | Meaning | Default |
| --- | --- | --- |
| `-r`, `--root` | mini program directory to decrypt (required) | |
| `-o`, `--output` | directory the extracted files are written to | `unpack` |
| `-n`, `--thread` | number of worker threads | `30` |
| `--disable-beautify` | write files exactly as stored | off |

The app id (`wx` followed by 16 lower-case hex digits) is the decryption key.
It is taken from the name of `--root` or of its parent directory; on macOS it
may appear anywhere in the path.

- If `--root` directly holds `__APP__.wxapkg`, only that package is unpacked
  into `--output`, and the app id is read from the directory above `--root`.
- Otherwise each sub-directory of `--root` (a version directory) is searched
  for `__APP__.wxapkg`, then for any `.wxapkg` file below it, then for
  `__APP__.wxapkg` one level deeper. Each package found is unpacked into
  `<output>/<sub-directory name>`.

At the end the total file count and a count of extracted files per
extension are printed. Problems are printed as `[!] ...` messages.

### `wxapkg scan`

```
wxapkg scan
wxapkg scan -r "/path/to/WeChat Files/Applet"
```

Lists the mini program directories under the root and looks up the name,
developer and description of each. Without `-r` the root is
`~/Documents/WeChat Files/Applet`, or on macOS
`~/Library/Containers/com.tencent.xinWeChat/Data/.wxapplet/packages`.
On macOS only directories with a version directory holding
`__APP__.wxapkg` are listed.

Lookups are sent as a JSON POST request to the URL in the
`WXAPKG_INFO_ENDPOINT` environment variable and cached in `wxid.json` in
the current directory. Without that variable, programs not already in the
cache are listed with an error instead of their details.

A screen shows a position bar, a table of up to ten rows and the details of
the highlighted program, followed by a `> ` prompt. Type one or more key
names separated by spaces and press Return:

| Keys | Action |
| --- | --- |
| `up`, `k` / `down`, `j` | move one row |
| `pgup`, `b` / `pgdown`, `f` | move one page |
| `home`, `g` / `end`, `G` | go to the first / last row |
| `esc` | toggle table focus (moves are ignored while unfocused) |
| `enter`, or an empty line | unpack the highlighted program |
| `q`, `ctrl+c`, or end of input | exit |

The chosen program is unpacked into a directory named after its app id in
the current directory, and its details are saved there as `detail.json`.

### Other options

```
wxapkg --version
wxapkg --disable-beautify unpack -r "/path/to/Applet/wx0123456789abcdef"
```

`--disable-beautify` is accepted before or after the command name.

## Package formats

Encrypted packages start with `V1MMWX`; their first 1024 bytes after that
header are AES-CBC encrypted with a key derived from the app id, and the
rest are XOR-ed with a byte of the app id. Plain packages begin with the
`0xBE` … `0xED` header. If the standard index cannot be read, an
alternative layout is searched for within the first 20 bytes.

## Using it as a library

- `wxapkg.decrypt`: `decrypt_file`, `decrypt_data`, `standard_decrypt`,
  `encrypt_package`, `parse_wxid`
- `wxapkg.archive`: `parse_standard`, `parse_macos`, `build_package`,
  `Entry`, `FormatError`
- `wxapkg.extract`: `unpack`, `extract_files`, `file_beautify`
- `wxapkg.beautify`: `pretty_json`, `pretty_html`, `pretty_javascript`
- `wxapkg.wxid`: `WxidInfo`, `WxidQuery`

## What it does not do

- The scan screen is line based: keys are typed at a prompt and confirmed
  with Return rather than acted on as they are pressed.
- No lookup service is built in; details are only fetched when
  `WXAPKG_INFO_ENDPOINT` is set.
- The JavaScript formatter only re-indents and spaces tokens; it does not
  reverse minification or bundling.

## Running the tests

```
pip install ".[test]"
pytest
```