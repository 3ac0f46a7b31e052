import os
import pytest
import sys

# Run Qt headless so GUI tests work without a display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
from pathlib import Path

# Add src to sys.path so we can import board_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from board_toolkit.core.models.buckets import AllocationTarget
from board_toolkit.core.models.filters import FilterContext
from board_toolkit.core.models.scripts import Script
from board_toolkit.distribution.store.repository import InMemoryScriptRepository


EXAM_ID = "x1"
STAGE_ID = "s1"
SUBJECT_ID = "k1"


def make_script(examinee_id: str, roll_number: int, institution_id: str = "m1", exam_center_id: str = "c1") -> Script:
    """Script with labels derived from its ids."""
    return Script(
        examinee_id=examinee_id,
        roll_number=roll_number,
        institution_id=institution_id,
        exam_center_id=exam_center_id,
        examinee_name=f"Examinee {examinee_id}",
        institution_name=f"Institution {institution_id}",
        institution_code=institution_id.upper(),
        exam_center_name=f"Center {exam_center_id}",
    )


# Common test fixtures
@pytest.fixture
def script_factory():
    """Return make_script for tests that build their own pools."""
    return make_script


@pytest.fixture
def context() -> FilterContext:
    return FilterContext(EXAM_ID, STAGE_ID, SUBJECT_ID)


@pytest.fixture
def sample_scripts() -> list:
    """One exam center, m1 with 6 scripts and m2 with 4, fetched out of roll order."""
    m1 = [make_script(f"a{roll}", roll, "m1") for roll in (104, 101, 106, 102, 105, 103)]
    m2 = [make_script(f"b{roll}", roll, "m2") for roll in (203, 201, 204, 202)]
    return m1 + m2


@pytest.fixture
def two_center_scripts() -> list:
    """m1 sits at c1 (3 scripts), m3 sits at c2 (3 scripts)."""
    c1 = [make_script(f"a{roll}", roll, "m1", "c1") for roll in (1, 2, 3)]
    c2 = [make_script(f"c{roll}", roll, "m3", "c2") for roll in (4, 5, 6)]
    return c1 + c2


@pytest.fixture
def targets() -> list:
    return [
        AllocationTarget("t1", "Examiner One", "E1"),
        AllocationTarget("t2", "Examiner Two", "E2"),
        AllocationTarget("t3", "Examiner Three", "E3"),
    ]


@pytest.fixture
def repo(sample_scripts, targets) -> InMemoryScriptRepository:
    """In-memory repository holding sample_scripts and targets under x1/s1/k1."""
    repository = InMemoryScriptRepository()
    repository.add_scripts(EXAM_ID, STAGE_ID, SUBJECT_ID, sample_scripts)
    repository.add_targets(EXAM_ID, targets)
    return repository
