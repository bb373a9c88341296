"""Render failed report nodes the way the console reporter prints them."""

from dataclasses import dataclass
from xml.etree.ElementTree import Element

from catchkit.test_adapter.models.source_location import SourceLocation

INDENT = "\t"


def location_of(element: Element) -> SourceLocation | None:
    """Read the ``filename``/``line`` attributes of a report node."""
    return SourceLocation.from_attributes(element.get("filename"), element.get("line"))


def failure_header(location: SourceLocation | None) -> str:
    """First line of every failure paragraph."""
    if location is None:
        return "FAILED:\n"
    return f"{location} FAILED:\n"


@dataclass(frozen=True)
class FailureExpression:
    """Details of one failed assertion, read from an ``Expression`` node."""

    location: SourceLocation | None
    expression_type: str | None = None
    original_expression: str | None = None
    expanded_expression: str | None = None
    exception_message: str | None = None

    @classmethod
    def from_element(cls, element: Element) -> "FailureExpression":
        """Collect the details of an ``Expression`` node."""
        expression_type = element.get("type")
        return cls(
            location=location_of(element),
            expression_type=expression_type.strip() if expression_type else None,
            original_expression=_child_text(element, "Original"),
            expanded_expression=_child_text(element, "Expanded"),
            exception_message=_child_text(element, "Exception"),
        )

    def __str__(self) -> str:
        message = failure_header(self.location)

        if self.original_expression is not None:
            message += "Expression:\n"
            message += INDENT + self._wrap(self.original_expression)

        if (
            self.expanded_expression is not None
            and self.expanded_expression != self.original_expression
        ):
            message += "With expansion:\n"
            message += INDENT + self._wrap(self.expanded_expression)

        if self.exception_message is not None:
            message += "due to unexpected exception with message:\n"
            message += f"{INDENT}{self.exception_message}\n"

        return message

    def _wrap(self, expression: str) -> str:
        if self.expression_type:
            return f"{self.expression_type}( {expression} )\n"
        return f"{expression}\n"


def format_failure(element: Element) -> str:
    """Format one failed ``Expression`` node as a paragraph."""
    return str(FailureExpression.from_element(element))


def _child_text(element: Element, tag: str) -> str | None:
    child = element.find(tag)
    if child is None:
        return None
    return "".join(child.itertext()).strip()
