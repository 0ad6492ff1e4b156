text = r"""
# riolog

The `riolog` utility is a viewer for RIO log files. It reads one or more log files, merges their entries
in timestamp order, filters them, and shows them with colors by log level in a pager (`less`), or writes
them to a plain text file.

Each RIO log entry is a single line of the form:

    -warning:<16866> 2020-01-13 20:09:18.476 UTC [net.io]: Connection retry \"eth0\"

| Field          | Description                                                        |
|----------------|--------------------------------------------------------------------|
| `-warning:`    | level: `debug`, `info`, `warning`, `critical` or `fatal`            |
| `<16866>`      | process id                                                         |
| timestamp      | `YYYY-MM-DD HH:MM:SS.SSS`, always UTC                              |
| `[net.io]`     | category                                                           |
| message        | free text after `]: `, control characters written as `\n`, `\t`, `\"`, `\'`, `\\`, `\0`, `\?` (`\r` is dropped) |

Entries are normally separated by blank lines.

## Colors

| Level    | Color        |
|----------|--------------|
| debug    | gray         |
| info     | white        |
| warning  | yellow       |
| critical | red          |
| fatal    | bright red   |

When more than one file is given, each line starts with the name of the file it came from.


## Command line options

| Option                  | Description                                                                  |
|-------------------------|------------------------------------------------------------------------------|
| --output, -o            | write the log to a file instead of showing it in the pager (no colors)      |
| --since, -S             | show only entries at or after this date/time                                 |
| --until, -U             | show only entries at or before this date/time                                |
| --level, -L             | show only entries with this level or higher                                  |
| --contains, -C          | show only entries whose message contains this text (case-sensitive)          |
| --pattern, -P           | show only entries whose message matches this regular expression              |
| --match-decoded         | match --contains/--pattern against the message with escapes decoded          |
| --no-color              | do not color the output                                                      |
| --no-format             | show escape sequences as written, without decoding them                      |
| --no-pager              | write to standard output instead of the pager                                |
| --wrap, -w              | wrap long lines in the pager instead of chopping them                        |
| --pager-command         | pager to use (defaults to `$RIOLOG_PAGER`, or `less`)                         |
| --join-continuation     | attach lines without a RIO header to the entry before them                   |
| --warn-malformed        | report lines that could not be parsed                                        |
| --issue-order           | report unparsed lines `immediate`ly, or `deferred` until the next entry      |
| --skip-unreadable       | when merging several files, skip files that cannot be read                   |
| --encoding, -enc        | encoding of the log files (default UTF-8)                                    |
| --memstats              | report peak memory use at exit                                               |


## Usage tips

### Date/time values

`--since` and `--until` accept `YYYY-MM-DD HH:MM:SS.SSS`, with trailing milliseconds, seconds, and
time optional. A "T" can be used between the date and time, so that the value does not need quoting on
the command line. Relative times such as "15m" (15 minutes ago) are also accepted, with units "s", "m",
"h", and "d". Both bounds are inclusive, and are compared against the (UTC) log timestamps.

### Input files

Files ending in `.gz` are read directly. With no file names, or a file name of `-`, `riolog` reads
standard input.

### Lines that cannot be parsed

Lines that do not follow the RIO format (or have an unknown level, a bad timestamp, or end in a lone
backslash) are skipped. Use `--warn-malformed` to list them on stderr.

### Exit status

| Status | Meaning                                  |
|--------|------------------------------------------|
| 0      | log shown or written                     |
| 2      | invalid command line                     |
| 3      | input file could not be opened or read   |
| 4      | output file could not be created/written |
| 5      | pager could not be started               |


## About riolog

riolog version 0.1.0

MIT License
"""
