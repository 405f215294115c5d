"""
Test that no asyncio.run() calls exist in app/ code.

The pipeline runs inside the server's event loop; asyncio.run() there
would fail or block the acknowledgment path.
"""

from pathlib import Path


def find_asyncio_run_usage(file_path: Path) -> list[tuple[int, str]]:
    """
    Find all asyncio.run() calls in a Python file.

    Returns:
        List of (line_number, line_content) tuples
    """
    issues = []
    lines = file_path.read_text(encoding="utf-8").split("\n")
    for i, line in enumerate(lines, start=1):
        stripped = line.strip()
        if "asyncio.run(" in line and not stripped.startswith("#"):
            issues.append((i, line))
    return issues


def test_no_asyncio_run_in_app():
    app_dir = Path(__file__).parent.parent / "app"
    assert app_dir.exists(), "app/ directory not found"

    all_issues = []
    for py_file in app_dir.rglob("*.py"):
        if "__pycache__" in str(py_file):
            continue
        for line_num, line_content in find_asyncio_run_usage(py_file):
            rel_path = py_file.relative_to(app_dir.parent)
            all_issues.append(f"{rel_path}:{line_num}: {line_content.strip()}")

    assert not all_issues, (
        "Found asyncio.run() calls in app/. Use 'await' inside async code:\n\n"
        + "\n".join(f"  - {issue}" for issue in all_issues)
    )
