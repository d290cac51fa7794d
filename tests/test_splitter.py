"""Tests for splitting a unified diff into per-file units."""

from __future__ import annotations

from diffgate.splitter import DIFF_HEADER, split_diff

SAMPLE_DIFF = """\
From 1a2b3c Mon Sep 17 00:00:00 2001
Subject: [PATCH] Add handler

diff --git a/src/Handler.java b/src/Handler.java
index 83db48f..bf269f4 100644
--- a/src/Handler.java
+++ b/src/Handler.java
@@ -1,3 +1,4 @@
 class Handler {
+    int retries = 3;
 }
diff --git a/web/app.min.js b/web/app.min.js
--- a/web/app.min.js
+++ b/web/app.min.js
@@ -1 +1 @@
-var a=1;
+var a=2;
diff --git a/docs/old.md b/docs/new.md
similarity index 90%
rename from docs/old.md
rename to docs/new.md
"""


class TestSplitDiff:
    def test_one_unit_per_file(self) -> None:
        files = split_diff(SAMPLE_DIFF)
        assert len(files) == 3

    def test_paths_use_destination(self) -> None:
        files = split_diff(SAMPLE_DIFF)
        assert [f.path for f in files] == ["src/Handler.java", "web/app.min.js", "docs/new.md"]

    def test_content_starts_with_header(self) -> None:
        for f in split_diff(SAMPLE_DIFF):
            assert f.content.startswith(DIFF_HEADER)

    def test_content_keeps_hunks(self) -> None:
        handler = split_diff(SAMPLE_DIFF)[0]
        assert handler.content.startswith("diff --git a/src/Handler.java b/src/Handler.java\n")
        assert "+    int retries = 3;" in handler.content
        assert "app.min.js" not in handler.content

    def test_preamble_discarded(self) -> None:
        files = split_diff(SAMPLE_DIFF)
        assert all("Subject:" not in f.content for f in files)

    def test_empty_diff(self) -> None:
        assert split_diff("") == []

    def test_text_without_headers(self) -> None:
        assert split_diff("just some text\nwithout a header\n") == []

    def test_blank_header_dropped(self) -> None:
        raw = "diff --git \n--- a/x\n+++ b/x\ndiff --git a/ok.py b/ok.py\n+x = 1\n"
        files = split_diff(raw)
        assert [f.path for f in files] == ["ok.py"]

    def test_n_units(self) -> None:
        raw = "".join(f"diff --git a/f{i}.py b/f{i}.py\n+line {i}\n" for i in range(7))
        files = split_diff(raw)
        assert len(files) == 7
        assert [f.path for f in files] == [f"f{i}.py" for i in range(7)]

    def test_marker_mid_line_not_split(self) -> None:
        raw = "diff --git a/a.py b/a.py\n+print('diff --git a/x b/y')\n"
        files = split_diff(raw)
        assert len(files) == 1
        assert "print('diff --git a/x b/y')" in files[0].content

    def test_header_only_chunk_kept(self) -> None:
        files = split_diff("diff --git a/bin.png b/bin.png")
        assert len(files) == 1
        assert files[0].path == "bin.png"
