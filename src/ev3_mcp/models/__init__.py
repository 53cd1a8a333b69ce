"""File formats stored on the brick."""

from .rsf import RsfSound, decode_rsf, encode_rsf, export_rsf_segments, import_rsf
