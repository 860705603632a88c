# xdplab

Pure-Python models of a set of XDP packet-processing programs. They let you
study and test how the programs behave without a kernel.

- **Hash functions** used by the data plane: `xdplab.fasthash`
  (`fasthash64`, `fasthash32`, `fasthash_mix`), `xdplab.lookup3`
  (`hashlittle`), `xdplab.xxhash32` (`xxhash32`, `xxhash32_short`,
  `xxhash32_anylength`) and `xdplab.xxhash64` (`xxhash64`).
- **Packet parsing** in `xdplab.packet`: `parse_five_tuple` extracts a
  `FiveTuple` from an Ethernet frame. It skips up to two VLAN tags and
  handles IPv4 carrying TCP or UDP. It returns `None` for any other frame.
  `FiveTuple.pack()` gives the 13-byte key in network byte order.
  `XdpAction` names the verdicts a program returns.
- **Count-min sketch** in `xdplab.countmin`:
  - `CountMinSketch` has `add` and `query` and uses 8-bit wrapping counters.
  - `CmsProgram` hashes each TCP/UDP frame's five-tuple into the sketch, counts it in `drop_count`, and returns `XdpAction.DROP` for every frame.
- **NAT**:
  - `xdplab.nat` provides `XdpNat`, which handles IPv4 TCP and UDP and patches the IP and transport checksums incrementally. The module also holds `FlowKey`, `Binding`, `csum_fold`, `csum_diff` and `calc_offset`.
  - `xdplab.simple_nat` provides `SimpleNat`, a TCP-only variant with one table per direction. It rewrites addresses and ports but leaves the checksums unchanged.
  - Both `process` methods return the verdict together with the resulting frame.
- **Option handling** in `xdplab.options`:
  - `parse_cmdline_args(argv, options, doc)` turns a getopt-style command line into a `Config`. `argv` starts with the program name.
  - `format_usage` builds the help text.
  - `OptionSpec` describes one long option.
  - Rejected options and `-h` raise `OptionError`. The exception carries the usage text and an exit code.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Examples

Hash a buffer:

```python
from xdplab.fasthash import fasthash64
from xdplab.xxhash64 import xxhash64

fasthash64(b"hello", 77)
xxhash64(b"hello", 0)
```

Feed frames through the count-min sketch program:

```python
from xdplab.countmin import CmsProgram
from xdplab.packet import parse_five_tuple

program = CmsProgram(4, 1024, 77)
verdict = program.process(frame)          # always XdpAction.DROP
key = parse_five_tuple(frame)
if key is not None:
    estimate = program.sketch.query(key.pack())
```

Run frames through the NAT:

```python
from xdplab.nat import XdpNat

nat = XdpNat("11.0.0.1", 10000, 100000)
verdict, rewritten = nat.process(frame)
```

## What it does not do

The package only models the packet handlers in memory:

- It does not load programs into a kernel or attach them to network interfaces.
- It does not read capture files.
- It installs no command-line program.
- The option parser only produces a `Config`. Acting on that configuration is left to the caller.