"""
Services package for the SOP Script service.

File-level helpers used by the command line tools: reading SOP documents
and writing exported scripts.
"""

from sop_script.services.sop_files import (
    load_sop,
    loads_sop,
    parse_sop,
    safe_stem,
    write_script,
)

__all__ = ["load_sop", "loads_sop", "parse_sop", "safe_stem", "write_script"]
