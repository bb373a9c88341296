"""Source location of an assertion reported by a test binary."""

from pathlib import PureWindowsPath

from pydantic import BaseModel, ConfigDict, Field


class SourceLocation(BaseModel):
    """A file and line pair, rendered as ``file(line)``."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(..., description="Source file as written in the report")
    line: int = Field(..., ge=0, description="1-based line number")

    @classmethod
    def from_attributes(
        cls, file: str | None, line: str | None
    ) -> "SourceLocation | None":
        """Build a location from raw report attributes.

        Older report schemas omit ``filename``/``line`` on some node kinds,
        so a missing or unparsable attribute yields ``None`` instead of an
        error.
        """
        if file is None or line is None:
            return None
        try:
            line_number = int(line.strip())
        except ValueError:
            return None
        if line_number < 0:
            return None
        return cls(file=file.strip(), line=line_number)

    def __str__(self) -> str:
        # PureWindowsPath splits on both separators
        return f"{PureWindowsPath(self.file).name}({self.line})"
