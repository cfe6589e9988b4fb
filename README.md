# notation

Building blocks for signing container artifacts: artifact descriptors and
signing payloads, the on-disk configuration files, the user/system directory
layout, the names of key specs and signing algorithms, and a manager for
external signing plugins.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Descriptors and payloads

`notation.types` holds `Descriptor`, `Payload`, `SignOptions` and
`VerifyOptions`, together with the `Signer` and `Verifier` protocols that a
signing implementation is expected to satisfy.

```python
from notation.types import Descriptor, Payload

desc = Descriptor(
    media_type="application/vnd.oci.image.manifest.v1+json",
    digest="sha256:" + "0" * 64,
    size=1024,
)
payload = Payload(target_artifact=desc)
data = payload.to_json()
assert Payload.from_json(data).target_artifact.equal(desc)
```

`Descriptor.equal` compares media type, digest and size; annotations are not
part of the comparison.

## Directory layout

`notation.dirs` looks configuration up in the user configuration directory
first and the system directory second. `default_path_manager()` returns a
`PathManager` whose methods `config()`, `signing_key_config()`,
`trust_policy()`, `local_key(name)` and `x509_trust_store(prefix, named_store)`
return the path of an existing file, or the path in the first directory where
a new one belongs.

The layer beneath is a `UnionDirFS` over several `RootedFS` trees, each backed
by a real directory (`DirFS`) or an in-memory tree (`MemoryFS`).
`UnionDirFS.lookup(...)` raises `FileNotFoundError` when nothing matches, while
`get_path(...)` falls back to the first directory. `load_path(goos,
user_config_dir, getenv)` computes the directories for a given operating
system and returns a `SystemPaths`.

## Configuration files

```python
from notation.config import load_config, load_signing_keys

cfg = load_config("config.json")          # a default Config when the file is missing
keys = load_signing_keys("signingkeys.json")
cfg.save("config.json")
```

Without a path argument these read and write `config.json` and
`signingkeys.json` at the locations given by the default path manager.

## Key specs and algorithms

`notation.algorithm` converts between `KeySpec` / `Algorithm` values and their
names, for example `parse_key_spec("RSA-2048")`, `key_spec_hash_string(...)`
and `parse_signing_algorithm("ECDSA-SHA-256")`. Unknown names raise
`ValueError`.

`notation.envelope` checks that an envelope media type is one of
`registered_envelope_types()` (`application/jose+json`, `application/cose`)
and that a payload content type is the supported payload media type.

## Plugins

Plugins live under `{root}/{name}/notation-{name}` (with `.exe` on Windows)
and speak a JSON protocol: the command name is the first argument and the
request is written to standard input. The requests, responses and
capabilities are in `notation.protocol`; plugin metadata is
`notation.metadata.Metadata`.

```python
from notation.manager import new_manager
from notation.protocol import GetMetadataRequest

mgr = new_manager("/path/to/plugins")
for plugin in mgr.list():
    print(plugin.metadata.name, plugin.err)

runner = mgr.runner("example")
metadata = runner.run(GetMetadataRequest())
```

`Manager.get` and `Manager.runner` raise `notation.manager.PluginNotFoundError`
when no plugin executable exists. A plugin that is found but fails its checks
is still returned, with the reason in `Plugin.err`.

The module-level `notation.manager.run` raises the
`notation.errors.RequestError` a plugin reports on failure, and
`PluginNotCompliantError` when its output cannot be decoded.
`PluginRunner.run` wraps any such failure in a `RuntimeError` prefixed with
the plugin name, with the original error as its cause.

## What this package does not do

It does not build, sign or verify signature envelopes, and it has no signer
that uses a local key or a plugin to produce signatures. It does not talk to
container registries to store or fetch signatures. It provides no command-line
program.