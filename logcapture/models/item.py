"""Models for test items, their setups and per-run statistics."""

from collections.abc import Sequence

from pydantic import Field

from logcapture.models.base import Model
from logcapture.models.result import TestGroup


class RunStats(Model):
    """Resource usage of a single run. Times are in nanoseconds."""

    elapsed: int = Field(default=0, description="Wall clock time")
    nbytes: int = Field(default=0, description="Bytes allocated")
    gc_time: int = Field(default=0, description="Time spent in garbage collection")
    allocs: int = Field(default=0, description="Number of allocations")
    compile_time: int = Field(default=0, description="Time spent compiling")
    recompile_time: int = Field(
        default=0, description="Part of compile_time spent recompiling"
    )


class TestSetup(Model):
    """Shared setup code that test items may depend on."""

    __test__ = False

    name: str = Field(..., description="Setup name, unique within a project")
    file: str = Field(..., description="Path of the file defining the setup")
    line: int = Field(..., description="Line where the setup is defined")
    project_root: str = Field(..., description="Root that file is reported against")


class TestItem(Model):
    """An independently schedulable unit of test code."""

    __test__ = False

    id: str = Field(..., description="Unique identifier of the item")
    name: str = Field(..., description="Display name")
    file: str = Field(..., description="Path of the file defining the item")
    line: int = Field(..., description="Line where the item is defined")
    project_root: str = Field(..., description="Root that file is reported against")
    worker_id: int | None = Field(
        default=None, description="Worker the item ran on, None for this process"
    )
    eval_number: int = Field(default=0, description="Position in the evaluation order")
    retries: int = Field(default=0, description="Number of retries allowed")
    testsetups: Sequence[TestSetup] = Field(
        default_factory=list, description="Setups the item depends on"
    )
    stats: Sequence[RunStats] = Field(
        default_factory=list, description="Statistics, one entry per run"
    )
    testsets: Sequence[TestGroup] = Field(
        default_factory=list, description="Result trees, one entry per run"
    )

    def with_run(self, testset: TestGroup, stats: RunStats) -> "TestItem":
        """Return a copy with one more run recorded."""
        return self.model_copy(
            update={
                "testsets": [*self.testsets, testset],
                "stats": [*self.stats, stats],
            }
        )


class ResultsFile(Model):
    """Test items with their recorded runs, as relayed by workers."""

    items: Sequence[TestItem] = Field(default_factory=list, description="Test items")
