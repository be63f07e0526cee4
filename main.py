#!/usr/bin/env python3
"""
Run dwarf-struct-query from a source checkout without installing it.

Query struct layouts and function symbols in a dwarf2json schema document
(``.json`` or ``.json.xz``), optionally decoding values from a raw memory dump:

    python main.py vmlinux.json.xz --list
    python main.py vmlinux.json.xz --struct task_struct,list_head
    python main.py vmlinux.json.xz --function 0xffffffff810a1b2c --elf vmlinux
    python main.py vmlinux.json.xz --image dump.bin --base 0xffff888000000000 \\
        --decode task_struct.pid --at 0xffff888004d2c000

Installed copies expose the same interface as the ``dwarf-struct-query`` command.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from dwarf_struct_query.main import main

if __name__ == "__main__":
    main()
