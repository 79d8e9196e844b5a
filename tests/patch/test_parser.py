import pytest

from applypatch.errors import FormatError
from applypatch.models import AddFile, DeleteFile, Hunk, UpdateFile
from applypatch.parser import parse_patch


def test_parses_all_operation_kinds_in_order():
    text = """*** Begin Patch
*** Add File: a/b/c.txt
+hi
+
+  indented
*** Update File: some/file.txt
@@
 hello
-world
+there
*** Delete File: gone.txt
*** End Patch
"""
    script = parse_patch(text)
    ops = script.operations
    assert len(ops) == 3

    assert isinstance(ops[0], AddFile)
    assert ops[0].path == "a/b/c.txt"
    assert ops[0].content == ("hi", "", "  indented")

    assert isinstance(ops[1], UpdateFile)
    assert ops[1].path == "some/file.txt"
    assert ops[1].move_to is None
    assert ops[1].hunks == (
        Hunk(
            context_before=("hello",),
            removed=("world",),
            added=("there",),
            line=7,
        ),
    )

    assert ops[2] == DeleteFile(path="gone.txt", line=11)


def test_move_to_and_hint_are_recorded():
    text = """*** Begin Patch
*** Update File: x.txt
*** Move to: sub/y.txt
@@ def main():
 a
-b
+c
*** End Patch"""
    op = parse_patch(text).operations[0]
    assert isinstance(op, UpdateFile)
    assert op.move_to == "sub/y.txt"
    assert op.hunks[0].hint == "def main():"


def test_sentinel_stripping_preserves_whitespace():
    text = "*** Begin Patch\n*** Update File: f.py\n@@\n     keep  \n-\told\t\n+  new  \n*** End Patch"
    hunk = parse_patch(text).operations[0].hunks[0]
    assert hunk.context_before == ("    keep  ",)
    assert hunk.removed == ("\told\t",)
    assert hunk.added == ("  new  ",)


def test_end_of_file_marker_sets_flag():
    text = """*** Begin Patch
*** Update File: f.txt
@@
 last
+appended
*** End of File
*** End Patch"""
    hunk = parse_patch(text).operations[0].hunks[0]
    assert hunk.is_end_of_file is True
    assert hunk.context_before == ("last",)
    assert hunk.added == ("appended",)


def test_first_hunk_may_omit_anchor_line():
    text = """*** Begin Patch
*** Update File: f.txt
 pre
-old
+new
@@
-x
+y
*** End Patch"""
    hunks = parse_patch(text).operations[0].hunks
    assert [h.removed for h in hunks] == [("old",), ("x",)]


def test_interleaved_changes_split_into_hunks():
    text = """*** Begin Patch
*** Update File: f.txt
@@
 a
-b
+B
 c
 d
-e
+E
 f
*** End Patch"""
    hunks = parse_patch(text).operations[0].hunks
    assert hunks == (
        Hunk(context_before=("a",), removed=("b",), added=("B",), line=3),
        Hunk(
            context_before=("c", "d"),
            removed=("e",),
            added=("E",),
            context_after=("f",),
            line=3,
        ),
    )


def test_blank_line_inside_hunk_is_empty_context():
    text = "*** Begin Patch\n*** Update File: f.txt\n@@\n a\n\n-b\n+c\n\n*** End Patch\n"
    hunk = parse_patch(text).operations[0].hunks[0]
    # The blank line before the change is context; the trailing one is not.
    assert hunk.context_before == ("a", "")
    assert hunk.context_after == ()


def test_crlf_patch_parses_like_lf():
    lf = "*** Begin Patch\n*** Add File: a.txt\n+x\n*** End Patch\n"
    assert parse_patch(lf.replace("\n", "\r\n")) == parse_patch(lf)


def test_surrounding_blank_lines_are_ignored():
    text = "\n\n*** Begin Patch\n\n*** Delete File: a.txt\n\n*** End Patch\n\n"
    assert parse_patch(text).operations == (DeleteFile(path="a.txt", line=5),)


def test_end_marker_inside_context_is_file_text():
    text = '''*** Begin Patch
*** Update File: t.py
@@
 P = """
 *** End Patch
 """
-x = 1
+x = 2
*** End Patch
'''
    (op,) = parse_patch(text).operations
    (hunk,) = op.hunks
    assert hunk.context_before == ('P = """', "*** End Patch", '"""')
    assert hunk.removed == ("x = 1",)
    assert hunk.added == ("x = 2",)


def test_empty_envelope_is_valid():
    assert parse_patch("*** Begin Patch\n*** End Patch").operations == ()


@pytest.mark.parametrize(
    "text, line, fragment",
    [
        ("", None, "*** Begin Patch"),
        ("hello\n*** Begin Patch\n*** End Patch", 1, "*** Begin Patch"),
        ("*** Begin Patch\n*** Delete File: a\n", 2, "*** End Patch"),
        ("*** Begin Patch\n*** End Patch\ntrailing", 3, "after"),
        ("  *** Begin Patch\n*** End Patch", 1, "*** Begin Patch"),
        ("*** Begin Patch\n*** End Patch  ", 2, "*** End Patch"),
        ("*** Begin Patch\n*** End Patch\n+x\n*** Bogus", 3, "after"),
        ("*** Begin Patch\n*** Rename File: a\n*** End Patch", 2, "unknown header"),
        ("*** Begin Patch\nrandom text\n*** End Patch", 2, "expected a file header"),
        ("*** Begin Patch\n*** Add File:   \n+x\n*** End Patch", 2, "empty path"),
        ("*** Begin Patch\n*** Delete File: a\n*** Move to: b\n*** End Patch", 3, "Move to"),
        ("*** Begin Patch\n*** Add File: a\n*** Move to: b\n*** End Patch", 3, "Move to"),
        ("*** Begin Patch\n*** Update File: a\n*** End Patch", 2, "no hunks"),
        ("*** Begin Patch\n*** Update File: a\n@@\n@@\n-x\n*** End Patch", 3, "no context"),
        ("*** Begin Patch\n*** Add File: a\nno plus\n*** End Patch", 3, "must start with '+'"),
        (
            "*** Begin Patch\n*** Update File: a\n@@\n-x\n+y\ngarbage\n*** End Patch",
            6,
            "expected a file header",
        ),
    ],
)
def test_format_errors(text, line, fragment):
    with pytest.raises(FormatError) as exc:
        parse_patch(text)
    assert exc.value.line == line
    assert fragment in exc.value.reason


def test_move_to_after_hunks_is_rejected():
    text = """*** Begin Patch
*** Update File: a.txt
@@
-x
+y
*** Move to: b.txt
*** End Patch"""
    with pytest.raises(FormatError) as exc:
        parse_patch(text)
    assert exc.value.line == 6
