"""
Shared pytest fixtures for build_check tests.

Two kinds of fixtures:
  - Pure-Python: a fake inspection backend with canned nm / objdump
    output, and a Makefile.conf writer.
  - Compiled: small shared objects and archives built on the fly with gcc,
    standing in for libopenblas.  Skipped when gcc, ar or binutils (nm,
    objdump, strip) are missing, or when gcc does not produce ELF (native
    Windows).
"""
import shutil
import subprocess
import tempfile
import textwrap
from pathlib import Path
from typing import Callable, List

import pytest

# Exports one representative symbol per feature, a data symbol with a
# feature-like name, a local function, and a libm call.
FEATURES_C = textwrap.dedent("""\
    #include <math.h>

    int cblas_data_only = 1;

    double cblas_dgemm(double a, double b) {
        return a * b;
    }

    void dsyev_(void) {
    }

    int LAPACKE_dsyev(int n) {
        return n;
    }

    static int local_helper(int x) {
        return x + 1;
    }

    int use_helper(int x) {
        return local_helper(x);
    }

    double use_libm(double x) {
        return cos(x);
    }
""")

# Only a data symbol carries the cblas_ prefix.
DATA_ONLY_C = textwrap.dedent("""\
    int cblas_only_data = 1;

    int get_value(void) {
        return cblas_only_data;
    }
""")

# A realistic Makefile.conf as the OpenBLAS make system writes it.
# {search} is replaced by a directory that exists.
MAKEFILE_CONF = textwrap.dedent("""\
    OSNAME=Linux
    ARCH=x86_64
    C_COMPILER=GCC
    BINARY32=
    BINARY64=1
    CEXTRALIB=-L{search} -L/nonexistent/gcc/x86_64-pc-linux-gnu/10.2.0 -lc
    F_COMPILER=GFORTRAN
    FC=gfortran
    BU=_
    FEXTRALIB=-L{search} -lgfortran -lm -lquadmath -lm -lc
    CORE=HASWELL
    LIBCORE=haswell
    NUM_CORES=8
    HAVE_MMX=1
    MAKE += -j 8
    SGEMM_UNROLL_M=4
""")


class FakeTools:
    """InspectionTools stand-in returning canned output lines."""

    name = "fake"

    def __init__(self, symbol_lines: List[str] = (), dependency_lines: List[str] = ()):
        self.symbol_lines = list(symbol_lines)
        self.dependency_lines = list(dependency_lines)
        self.calls: List[str] = []

    def list_global_symbols(self, path) -> List[str]:
        self.calls.append("symbols")
        return self.symbol_lines

    def list_dependencies(self, path) -> List[str]:
        self.calls.append("dependencies")
        return self.dependency_lines


# nm -g / objdump -p excerpts of a real libopenblas.so
NM_LINES = [
    "0000000000909b30 T zupmtr_",
    "00000000000a1f40 T cblas_dgemm",
    "00000000000a1f40 T cblas_dgemm",
    "0000000000512e80 T dsyev_",
    "0000000000c1a2b0 T LAPACKE_dsyev",
    "0000000001c3e020 D openblas_config_data",
    "0000000001c40000 B gotoblas",
    "                 U cos",
    "                 w __gmon_start__",
    "",
    "libopenblas.a(dgemm.o):",
]

OBJDUMP_LINES = [
    "",
    "libopenblas.so.0:     file format elf64-x86-64",
    "",
    "Dynamic Section:",
    "  NEEDED               libm.so.6",
    "  NEEDED               libgfortran.so.5",
    "  NEEDED               libc.so.6",
    "  NEEDED               libm.so.6",
    "  SONAME               libopenblas.so.0",
    "  INIT                 0x0000000000018000",
]


@pytest.fixture
def fake_tools() -> FakeTools:
    """Fake backend loaded with libopenblas-like output."""
    return FakeTools(NM_LINES, OBJDUMP_LINES)


@pytest.fixture
def make_fake_tools() -> Callable[..., FakeTools]:
    """Factory for fake backends with custom output."""
    return FakeTools


@pytest.fixture
def write_make_conf(tmp_path) -> Callable[[str], Path]:
    """Factory writing Makefile.conf text into a fresh directory."""
    counter = iter(range(1_000_000))

    def _write(text: str) -> Path:
        d = tmp_path / f"conf{next(counter)}"
        d.mkdir()
        p = d / "Makefile.conf"
        p.write_text(text)
        return p

    return _write


@pytest.fixture
def openblas_conf(write_make_conf, tmp_path) -> Path:
    """MAKEFILE_CONF with an existing search directory filled in."""
    search = tmp_path / "gcc" / "lib"
    search.mkdir(parents=True)
    return write_make_conf(MAKEFILE_CONF.format(search=search))


# ── Compiled fixtures ────────────────────────────────────────────────────────

def _tools_available() -> bool:
    return all(shutil.which(t) is not None for t in ("gcc", "ar", "nm", "objdump", "strip"))


def _gcc_produces_elf() -> bool:
    """Native Windows gcc produces PE, which none of these tests handle."""
    with tempfile.TemporaryDirectory() as tmpdir:
        test_c = Path(tmpdir) / "test.c"
        test_out = Path(tmpdir) / "libtest.so"
        test_c.write_text("int f(void) { return 0; }")
        try:
            subprocess.run(
                ["gcc", "-shared", "-fPIC", str(test_c), "-o", str(test_out)],
                check=True,
                capture_output=True,
                timeout=30,
            )
        except (OSError, subprocess.SubprocessError):
            return False
        return test_out.exists() and test_out.read_bytes()[:4] == b"\x7fELF"


def _compile_shared(source: str, output: Path) -> Path:
    src_file = output.with_name(output.name + ".c")
    src_file.write_text(source)
    subprocess.run(
        [
            "gcc", "-shared", "-fPIC", "-O0",
            str(src_file),
            "-o", str(output),
            "-Wl,--no-as-needed", "-lm",
        ],
        check=True,
        capture_output=True,
        timeout=60,
    )
    return output


def _compile_static(source: str, output: Path) -> Path:
    src_file = output.with_name(output.name + ".c")
    obj_file = output.with_name(output.name + ".o")
    src_file.write_text(source)
    subprocess.run(
        ["gcc", "-c", "-fPIC", "-O0", str(src_file), "-o", str(obj_file)],
        check=True,
        capture_output=True,
        timeout=60,
    )
    subprocess.run(
        ["ar", "rcs", str(output), str(obj_file)],
        check=True,
        capture_output=True,
        timeout=30,
    )
    return output


@pytest.fixture(scope="session")
def toolchain_ok():
    """Skip tests if the C toolchain or binutils are unavailable."""
    if not _tools_available():
        pytest.skip("gcc, ar and binutils are required for compiled fixtures")
    if not _gcc_produces_elf():
        pytest.skip("gcc does not produce ELF shared objects on this host")


@pytest.fixture(scope="session")
def fixtures_dir(tmp_path_factory, toolchain_ok) -> Path:
    return tmp_path_factory.mktemp("build_check_fixtures")


@pytest.fixture(scope="session")
def features_so(fixtures_dir) -> Path:
    """Shared object exporting cblas_, dsyev_ and LAPACKE_ symbols."""
    return _compile_shared(FEATURES_C, fixtures_dir / "libfeatures.so")


@pytest.fixture(scope="session")
def data_only_so(fixtures_dir) -> Path:
    """Shared object whose only cblas_ symbol lives in .data."""
    return _compile_shared(DATA_ONLY_C, fixtures_dir / "libdataonly.so")


@pytest.fixture(scope="session")
def stripped_features_so(fixtures_dir) -> Path:
    """FEATURES_C shared object with .symtab removed, as installed libraries ship."""
    so = _compile_shared(FEATURES_C, fixtures_dir / "libfeatures_stripped.so")
    subprocess.run(["strip", "--strip-all", str(so)], check=True, timeout=30)
    return so


@pytest.fixture
def build_out_dir(tmp_path, toolchain_ok) -> Path:
    """A make output directory: Makefile.conf + libopenblas.{a,so}."""
    out = tmp_path / "OpenBLAS"
    out.mkdir()
    (out / "Makefile.conf").write_text(
        "OSNAME=Linux\nNOFORTRAN=1\nCEXTRALIB=-lc\n"
    )
    _compile_shared(FEATURES_C, out / "libopenblas.so")
    _compile_static(FEATURES_C, out / "libopenblas.a")
    return out


@pytest.fixture
def not_elf(tmp_path) -> Path:
    """A file that is not an ELF binary."""
    p = tmp_path / "not_an_elf.so"
    p.write_bytes(b"This is not an ELF file.\x00\x00\x00")
    return p
