"""Hand generated assembly to nasm and ld, then run the result."""
import shutil
import subprocess
from pathlib import Path

from errors import ToolchainError

NASM = 'nasm'
NASM_FORMAT = 'elf64'
LD = 'ld'
DEFAULT_STEM = 'out'


def find_tool(name: str) -> str:
    path = shutil.which(name)
    if path is None:
        raise ToolchainError(f"'{name}' not found in PATH")
    return path


def run_tool(args):
    proc = subprocess.run(args, capture_output=True, text=True)
    if proc.returncode != 0:
        raise ToolchainError(f"{Path(args[0]).name} failed with status {proc.returncode}\n{proc.stderr}")
    return proc


def write_assembly(asm_text: str, stem: str = DEFAULT_STEM) -> Path:
    asm_path = Path(f'{stem}.asm')
    asm_path.write_text(asm_text, encoding='utf-8')
    return asm_path


def assemble(stem: str = DEFAULT_STEM) -> Path:
    run_tool([find_tool(NASM), f'-f{NASM_FORMAT}', f'{stem}.asm', '-o', f'{stem}.o'])
    return Path(f'{stem}.o')


def link(stem: str = DEFAULT_STEM) -> Path:
    run_tool([find_tool(LD), f'{stem}.o', '-o', stem])
    return Path(stem)


def run(stem: str = DEFAULT_STEM) -> int:
    """Execute the linked binary and return its exit status."""
    exe = Path(stem).resolve()
    status = subprocess.run([str(exe)]).returncode
    # Killed by a signal (e.g. SIGFPE on division by zero): report it like a shell
    return status if status >= 0 else 128 - status

