"""Configuration of the test framework command-line protocol."""

from pydantic import BaseModel, Field


class AdapterSettings(BaseModel):
    """Flags and limits used when talking to test binaries."""

    list_tests_flag: str = Field(
        default="--list-tests", description="Flag printing the test catalog"
    )
    signature_flags: tuple[str, ...] = Field(
        default=("--list-tests", "--list-tags"),
        description="Strings every supported binary embeds in its help text",
    )
    reporter_flag: str = Field(
        default="--reporter", description="Flag selecting the reporter"
    )
    reporter: str = Field(default="xml", description="Structured reporter name")
    break_flag: str = Field(
        default="--break", description="Flag breaking into the debugger on failure"
    )
    output_flag: str = Field(
        default="--out", description="Flag redirecting the report to a file"
    )
    max_section_depth: int = Field(
        default=64, ge=1, description="Maximum nesting of report sections"
    )
