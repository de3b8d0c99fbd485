"""
Diagram validation - Check diagrams for structural issues.

The store accepts connectors to missing shapes and duplicate ids without
complaint. This module reports those states so a host can surface them.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Diagram


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Breaks referential integrity or id uniqueness
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a diagram."""
    severity: IssueSeverity
    message: str
    shape_id: str | None = None
    connector_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.shape_id:
            result["shapeId"] = self.shape_id
        if self.connector_id:
            result["connectorId"] = self.connector_id
        return result


def validate_diagram(diagram: "Diagram") -> list[ValidationIssue]:
    """
    Validate a diagram and return a list of issues.

    Checks for:
    - Empty diagram - INFO
    - Duplicate shape ids - ERROR
    - Duplicate connector ids - ERROR
    - Dangling connectors (endpoint shape doesn't exist) - ERROR
    - Self-referencing connectors - WARNING
    - Duplicate connectors (same from->to) - WARNING

    Args:
        diagram: The diagram to validate

    Returns:
        List of ValidationIssue objects
    """
    issues: list[ValidationIssue] = []

    shapes = diagram.shapes
    connectors = diagram.connectors

    if not shapes and not connectors:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Diagram has no shapes"
        ))
        return issues

    shape_ids = {s.id for s in shapes}

    for shape_id, count in Counter(s.id for s in shapes).items():
        if count > 1:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Shape id used {count} times: {shape_id}",
                shape_id=shape_id
            ))

    for connector_id, count in Counter(c.id for c in connectors).items():
        if count > 1:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connector id used {count} times: {connector_id}",
                connector_id=connector_id
            ))

    for connector in connectors:
        if connector.from_shape_id not in shape_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connector references non-existent source shape: {connector.from_shape_id}",
                connector_id=connector.id
            ))
        if connector.to_shape_id not in shape_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connector references non-existent target shape: {connector.to_shape_id}",
                connector_id=connector.id
            ))

    for connector in connectors:
        if connector.from_shape_id == connector.to_shape_id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Self-referencing connector (shape points to itself)",
                connector_id=connector.id,
                shape_id=connector.from_shape_id
            ))

    seen_pairs: set[tuple[str, str]] = set()
    for connector in connectors:
        pair = (connector.from_shape_id, connector.to_shape_id)
        if pair in seen_pairs:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message=f"Duplicate connector from {pair[0]} to {pair[1]}",
                connector_id=connector.id
            ))
        else:
            seen_pairs.add(pair)

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    errors = len([i for i in issues if i.severity == IssueSeverity.ERROR])
    return {
        "total": len(issues),
        "errors": errors,
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": errors == 0
    }
