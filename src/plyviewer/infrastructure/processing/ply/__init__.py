"""
PLY decoding and encoding for renderer-ready geometry.

Public API:
-----------
**Loading**:
- parse_ply()             - Decode from an open binary stream
- load_ply()              - Decode from a local or remote path
- load_ply_bytes()        - Decode from bytes (in-memory)
- parse_header()          - Header only, stream left at the payload

**Writing**:
- write_ply()             - Encode to a local or remote path
- write_ply_bytes()       - Encode to bytes (in-memory)

Architecture:
-------------
```
header_parser.py   - Byte-exact header reader -> Header
scalar_decoder.py  - Per-type decoding and normalization, binary cursor
vertex_decoder.py  - Vertex block (numpy structured dtype / ASCII tokens)
face_decoder.py    - Face block with triangle/quad triangulation
loader.py          - Pipeline: header -> vertices -> faces -> synthesis
writer.py          - Geometry -> PLY
utils.py           - SH DC conversion utilities
```

Example Usage:
--------------
```python
from plyviewer.infrastructure.processing.ply import load_ply, write_ply

geometry = load_ply("./models/bunny.ply")
write_ply("./out/bunny_ascii.ply", geometry, format="ascii")
```
"""

# Public API - Loaders
from plyviewer.infrastructure.processing.ply.header_parser import parse_header
from plyviewer.infrastructure.processing.ply.loader import load_ply, load_ply_bytes, parse_ply

# Public API - Writers
from plyviewer.infrastructure.processing.ply.writer import (
    write_ply,
    write_ply_bytes,
    write_ply_stream,
)

# Public API - Utilities
from plyviewer.infrastructure.processing.ply.utils import SH_C0, sh2rgb_np

__all__ = [
    # Loaders
    "parse_header",
    "parse_ply",
    "load_ply",
    "load_ply_bytes",
    # Writers
    "write_ply",
    "write_ply_bytes",
    "write_ply_stream",
    # Utilities
    "SH_C0",
    "sh2rgb_np",
]
