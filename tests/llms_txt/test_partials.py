import logging

from plugins.llms_txt.partials import find_partial_imports, is_partial, resolve_partial_imports

PARTIAL = """---
title: Shared Component
---

## Common Configuration

This is shared configuration that appears in multiple documents.

```javascript
const config = { timeout: 5000 };
```
"""


class TestFindPartialImports:
    def test_only_underscore_targets_are_bindings(self):
        body = (
            "import Tabs from '@theme/Tabs';\n"
            "import Shared from './_shared.mdx';\n"
            'import Other from "../common/_other.md"\n'
            "import Nested from './_dir/file.mdx';\n"
        )
        bindings = find_partial_imports(body)
        assert [(b.identifier, b.target) for b in bindings] == [
            ("Shared", "./_shared.mdx"),
            ("Other", "../common/_other.md"),
        ]
        assert bindings[0].statement == "import Shared from './_shared.mdx';"

    def test_is_partial(self):
        assert is_partial("docs/_shared.mdx")
        assert not is_partial("docs/shared.mdx")


class TestResolvePartialImports:
    def test_self_closing_usage_inlined(self, tmp_path):
        (tmp_path / "_shared-config.mdx").write_text(PARTIAL, encoding="utf-8")
        body = (
            "# API Documentation\n\n"
            "import SharedConfig from './_shared-config.mdx';\n\n"
            "Before you begin:\n\n"
            "<SharedConfig />\n\n"
            "## Making Requests"
        )
        result = resolve_partial_imports(body, tmp_path / "api.mdx")

        assert "## Common Configuration" in result
        assert "const config = { timeout: 5000 };" in result
        assert "import SharedConfig" not in result
        assert "<SharedConfig" not in result
        assert "title: Shared Component" not in result
        assert result.index("Before you begin") < result.index("## Common Configuration")

    def test_paired_usage_with_props_inlined(self, tmp_path):
        (tmp_path / "_note.md").write_text("Partial body", encoding="utf-8")
        body = 'import Note from "./_note.md"\n\n<Note kind="info">placeholder</Note>\n\n<Note kind="x" />'
        result = resolve_partial_imports(body, tmp_path / "page.md")
        assert result.count("Partial body") == 2
        assert "placeholder" not in result
        assert "<Note" not in result

    def test_relative_to_importing_file(self, tmp_path):
        (tmp_path / "common").mkdir()
        (tmp_path / "guides").mkdir()
        (tmp_path / "common" / "_intro.mdx").write_text("Shared intro", encoding="utf-8")
        body = "import Intro from '../common/_intro.mdx';\n\n<Intro />"
        result = resolve_partial_imports(body, tmp_path / "guides" / "start.mdx")
        assert result.strip() == "Shared intro"

    def test_extension_can_be_omitted(self, tmp_path):
        (tmp_path / "_snippet.md").write_text("Snippet text", encoding="utf-8")
        body = "import Snippet from './_snippet';\n\n<Snippet />"
        assert resolve_partial_imports(body, tmp_path / "page.md").strip() == "Snippet text"

    def test_missing_partial_left_untouched(self, tmp_path, caplog):
        body = "import Missing from './_missing.mdx';\n\n<Missing />"
        with caplog.at_level(logging.WARNING, logger="mkdocs.plugins.llms_txt"):
            result = resolve_partial_imports(body, tmp_path / "page.mdx")
        assert result == body
        assert "_missing.mdx" in caplog.text

    def test_nested_partials_resolved(self, tmp_path):
        (tmp_path / "_inner.mdx").write_text("Inner text", encoding="utf-8")
        (tmp_path / "_outer.mdx").write_text(
            "Outer text\n\nimport Inner from './_inner.mdx';\n\n<Inner />", encoding="utf-8"
        )
        body = "import Outer from './_outer.mdx';\n\n<Outer />"
        result = resolve_partial_imports(body, tmp_path / "page.mdx")
        assert "Outer text" in result
        assert "Inner text" in result
        assert "<Inner" not in result

    def test_cycle_terminates(self, tmp_path, caplog):
        (tmp_path / "_a.mdx").write_text("A text\n\nimport B from './_b.mdx';\n\n<B />", encoding="utf-8")
        (tmp_path / "_b.mdx").write_text("B text\n\nimport A from './_a.mdx';\n\n<A />", encoding="utf-8")
        body = "import A from './_a.mdx';\n\n<A />"
        with caplog.at_level(logging.WARNING, logger="mkdocs.plugins.llms_txt"):
            result = resolve_partial_imports(body, tmp_path / "page.mdx")
        assert "A text" in result
        assert "B text" in result
        assert "cyclic" in caplog.text

    def test_fenced_usage_examples_left_alone(self, tmp_path):
        (tmp_path / "_shared.mdx").write_text("Shared text", encoding="utf-8")
        sample = "```mdx\nimport Shared from './_shared.mdx';\n\n<Shared />\n```"
        body = f"import Shared from './_shared.mdx';\n\nUsage:\n\n{sample}\n\n<Shared />"

        assert [b.identifier for b in find_partial_imports(sample)] == []
        result = resolve_partial_imports(body, tmp_path / "page.mdx")
        assert sample in result
        assert result.count("Shared text") == 1
        assert result.endswith("Shared text")

    def test_body_without_partials_unchanged(self, tmp_path):
        body = "import Tabs from '@theme/Tabs';\n\n<Tabs />"
        assert resolve_partial_imports(body, tmp_path / "page.mdx") == body
