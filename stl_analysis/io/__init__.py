"""Binary STL input/output."""

from stl_analysis.io.stl_codec import STLCodecError, read_stl_binary, write_stl_binary

__all__ = ["STLCodecError", "read_stl_binary", "write_stl_binary"]
