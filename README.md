# promcommon

Shared building blocks for monitoring components.

## Modules

- `promcommon.model.times`: `Time` (milliseconds since the epoch, with
  `from_unix`, `from_unix_nano`, `add`, `sub`, `to_datetime` and a JSON form
  of decimal seconds), `Interval`, and `Duration` with the compact
  `1y2w3d4h5m6s7ms` syntax (`parse_duration`, `Duration.parse`, JSON and YAML
  helpers). Units must run from largest to smallest; a year is 365 days.
- `promcommon.model.value_type`: the `ValueType` enum (`<ValNone>`, `scalar`,
  `vector`, `matrix`, `string`).
- `promcommon.model.value_float`: `SampleValue`, `SamplePair` and
  `format_float`.
- `promcommon.model.value_histogram`: native histograms: `FloatString`,
  `HistogramBucket`, `SampleHistogram`, `SampleHistogramPair`, `buckets_equal`.
- `promcommon.model.value`: query results: `Sample`, `SampleStream`,
  `Scalar`, `String`, `Vector`, `Matrix`, `samples_equal`. Metrics are plain
  `dict[str, str]` label maps. Every type has `to_json()` and `from_json()`
  for the query API wire format.
- `promcommon.model.silence`: `Matcher` and `Silence`, each with a
  `validate()` that raises `ValueError`.
- `promcommon.promlog`: `AllowedLevel`, `AllowedFormat`, `Config`,
  `LogfmtLogger`, `JsonLogger`, `DynamicLogger`, the constructors `new`,
  `new_with_logger`, `new_dynamic`, `new_dynamic_with_logger`, and the level
  helpers `debug`, `info`, `warn`, `error`. Entries carry `ts` and `caller`
  fields; output goes to standard error unless a stream is given.
- `promcommon.logflags`: `add_flags` adds `--log.level` (default `info`) and
  `--log.format` (default `logfmt`) to an `argparse` parser; `apply_args`
  stores the parsed values in a `promlog.Config`.
- `promcommon.version`: `print_version`, `info`, `build_context`,
  `get_revision`, `get_tags`. The module-level `VERSION`, `REVISION`,
  `BRANCH`, `BUILD_USER` and `BUILD_DATE` are empty until set at build time.
- `promcommon.sigv4_config`: `SigV4Config`, loaded with `from_yaml` (unknown
  and repeated keys are rejected) and checked with `validate`.
- `promcommon.route`: `Router`, a WSGI router with `:name` and `*name` path
  parameters, `with_prefix`, `with_instrumentation`, `redirect`; plus
  `param`, `with_param` and `file_serve`.
- `promcommon.static_server`: `static_file_server(root)`, a WSGI application
  serving files below `root` and setting fixed content types for common web
  assets (`MIME_TYPES`).

## Installation

```
pip install promcommon
```

## Examples

Durations:

```python
from promcommon.model.times import parse_duration

d = parse_duration("3w2d1h")
print(d)            # 23d1h
print(d.to_json())  # "23d1h"
```

Query values:

```python
from promcommon.model.value import Vector

vec = Vector.from_json('[{"metric":{"__name__":"up"},"value":[1234.567,"1"]}]')
print(vec.to_json())
```

Logging:

```python
from promcommon import promlog

level = promlog.AllowedLevel()
level.set("info")
logger = promlog.new(promlog.Config(level=level))
promlog.info(logger, "msg", "started")
promlog.debug(logger, "msg", "hidden")  # filtered out
```

Routing:

```python
from promcommon.route import Router, param

def hello(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [param(environ, "name").encode()]

router = Router().with_prefix("/api")
router.get("/hello/:name", hello)
# `router` is a WSGI application.
```

## What it does not do

- `SigV4Config` only holds and validates signing settings; the package does
  not sign requests or fetch AWS credentials.
- `Router` and `static_file_server` are WSGI applications; the package
  starts no HTTP server of its own. Run them under any WSGI server.
- There is no command-line program.

## Running the tests

```
pip install -e .[test]
pytest
```