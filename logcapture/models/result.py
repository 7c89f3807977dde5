"""Result tree produced by evaluating a test item.

A node is either a leaf result or a group of nodes. The tree is built by the
test framework; this package only walks it.
"""

from collections.abc import Sequence
from typing import Annotated, Literal, TypeAlias

from pydantic import Field

from logcapture.models.base import Model

LeafStatus: TypeAlias = Literal["pass", "fail", "error"]


class LeafResult(Model):
    """Outcome of a single assertion."""

    kind: Literal["leaf"] = "leaf"
    status: LeafStatus = Field(..., description="Outcome of the assertion")
    expression: str = Field(default="", description="Source of the assertion")
    source: str | None = Field(default=None, description="file:line of the assertion")
    message: str | None = Field(
        default=None, description="Evaluated values or exception text"
    )

    @property
    def failed(self) -> bool:
        return self.status != "pass"

    def render(self) -> str:
        """Describe the result the way a test report shows it."""
        location = f" at {self.source}" if self.source else ""
        match self.status:
            case "pass":
                lines = ["Test Passed"]
            case "fail":
                lines = [f"Test Failed{location}"]
            case _:
                lines = [f"Error During Test{location}", "  Test threw exception"]
        if self.expression:
            lines.append(f"  Expression: {self.expression}")
        if self.message:
            lines.extend(f"  {line}" for line in self.message.splitlines())
        return "\n".join(lines)


class TestGroup(Model):
    """A named group of results, possibly nested."""

    __test__ = False

    kind: Literal["group"] = "group"
    description: str = Field(..., description="Human-readable group name")
    results: Sequence["ResultNode"] = Field(
        default_factory=list, description="Child nodes in evaluation order"
    )
    n_passed: int = Field(default=0, description="Number of passing leaves")

    @property
    def anynonpass(self) -> bool:
        """Whether any leaf below this group failed or errored."""
        for node in self.results:
            match node:
                case LeafResult() if node.failed:
                    return True
                case TestGroup() if node.anynonpass:
                    return True
        return False


ResultNode = Annotated[LeafResult | TestGroup, Field(discriminator="kind")]

TestGroup.model_rebuild()
