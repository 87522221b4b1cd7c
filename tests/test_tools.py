"""Tests for the file transformations in sitetools."""

import pytest

from sitetools import shorthand, xmljson
from sitetools.indexer import identifier, render_index, write_index
from sitetools.styles import compile_stylesheet, is_entry_stylesheet, minify
from sitetools.templates import output_name, render, stem, tidy_html
from sitetools.urls import page_url, pretty_path


class TestPrettyUrls:
    @pytest.mark.parametrize(
        "rel, expected",
        [
            ("index.html", "index.html"),
            ("404.html", "404.html"),
            ("about.html", "about/index.html"),
            ("docs_intro.html", "docs/intro/index.html"),
            ("guides/setup.html", "guides/setup/index.html"),
            ("guides/index.html", "guides/index.html"),
            ("feed.xml", "feed.xml"),
        ],
    )
    def test_pretty_path(self, rel, expected):
        assert pretty_path(rel).as_posix() == expected

    def test_page_url(self):
        assert page_url("index.html") == ""
        assert page_url("about.html") == "about/"
        assert page_url("404.html") == "404.html"


class TestTemplates:
    def test_names(self):
        assert output_name("views/about.html.j2") == "about.html"
        assert stem("views/person.xml.j2") == "person"

    def test_tidy_html(self):
        html = "<div>   \n\n\n\n  <p>a</p>  \n</div>\n\n"
        assert tidy_html(html) == "<div>\n\n  <p>a</p>\n</div>\n"

    def test_tidy_keeps_verbatim_blocks(self):
        html = "<pre>x  \n\n\n\ny</pre>\n<script>var a = 1;   \n\n\n</script>"
        assert tidy_html(html) == html + "\n"

    def test_components_not_double_escaped(self, tmp_path, write):
        write("pages/mixins/badge.j2", '{% macro badge(text) %}<b class="badge">{{ text }}</b>{% endmacro %}')
        view = write(
            "pages/views/index.html.j2",
            '{% import "mixins/_index.j2" as mixins %}{{ mixins.badge.badge(label) }}',
        )
        write_index(tmp_path / "pages" / "mixins")
        out = render(view, tmp_path / "pages", {"label": "a & b"})
        assert out == '<b class="badge">a &amp; b</b>'


class TestIndexer:
    def test_identifier(self):
        from pathlib import Path

        assert identifier(Path("forms/text-input.j2")) == "forms_text_input"
        assert identifier(Path("3col.j2")) == "c_3col"

    def test_index_lists_components(self, tmp_path, write):
        write("mixins/button.j2", "")
        write("mixins/forms/input-field.j2", "")
        write("mixins/_index.j2", "stale")
        index = render_index(tmp_path / "mixins")
        assert index.splitlines() == [
            '{% import "mixins/button.j2" as _button %}{% set button = _button %}',
            '{% import "mixins/forms/input-field.j2" as _forms_input_field %}'
            "{% set forms_input_field = _forms_input_field %}",
        ]

    def test_write_only_on_change(self, tmp_path, write):
        write("mixins/button.j2", "")
        assert write_index(tmp_path / "mixins") is True
        assert write_index(tmp_path / "mixins") is False
        write("mixins/card.j2", "")
        assert write_index(tmp_path / "mixins") is True

    def test_missing_folder(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            write_index(tmp_path / "nope")


class TestXmlJson:
    def test_drops_root_and_attributes(self):
        data = xmljson.convert('<root><name lang="en">Docs</name><empty/></root>')
        assert data == {"name": "Docs", "empty": ""}

    def test_repeated_children_become_lists(self):
        data = xmljson.convert("<root><tag>a</tag><tag>b</tag><one>c</one></root>")
        assert data == {"tag": ["a", "b"], "one": "c"}

    def test_at_keys_and_entity_unwrap(self):
        xml = (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            "<root><entity><at-context>https://schema.org</at-context>"
            "<at-type>Person</at-type><address><at-type>PostalAddress</at-type></address>"
            "</entity></root>"
        )
        assert xmljson.convert(xml) == {
            "@context": "https://schema.org",
            "@type": "Person",
            "address": {"@type": "PostalAddress"},
        }

    def test_entity_kept_when_not_alone(self):
        data = xmljson.convert("<root><entity>a</entity><other>b</other></root>")
        assert data == {"entity": "a", "other": "b"}

    def test_mixed_text(self):
        assert xmljson.convert("<root>hi <b>there</b></root>") == {"b": "there", "_": "hi "}

    def test_dumps(self):
        data = {"@type": "Thing", "name": "Zoë"}
        assert xmljson.dumps_min(data) == '{"@type":"Thing","name":"Zoë"}'
        assert xmljson.dumps_pretty(data).startswith('{\n  "@type": "Thing",')

    def test_malformed(self):
        with pytest.raises(xmljson.ParseError):
            xmljson.convert("<root><a></root>")


class TestShorthand:
    def test_single_class_rule(self):
        out = shorthand.expand(".btn { color: red; }")
        assert out == "%btn { color: red; }\n.btn { @extend %btn; }"

    def test_other_statements_untouched(self):
        src = (
            '@import "variables";\n'
            "// .note { }\n"
            "$gap: 1rem;\n"
            ".a .b { margin: $gap; }\n"
            ".c:hover { color: blue; }\n"
        )
        assert shorthand.expand(src) == src

    def test_nested_body_and_strings(self):
        src = '.icon {\n  &::before { content: "}"; }\n  .x { top: 0; }\n}\n'
        out = shorthand.expand(src)
        assert out.startswith('%icon {\n  &::before { content: "}"; }')
        assert out.endswith("}\n.icon { @extend %icon; }\n")

    def test_unbalanced(self):
        with pytest.raises(ValueError, match="Unbalanced"):
            shorthand.expand(".a { color: red;")

    def test_partial_path(self, tmp_path):
        assert shorthand.partial_path(tmp_path / "%buttons.scss") == tmp_path / "_buttons.scss"


class TestStyles:
    def test_entry_stylesheets(self):
        assert is_entry_stylesheet("main.scss")
        assert is_entry_stylesheet("print.css")
        assert not is_entry_stylesheet("_variables.scss")
        assert not is_entry_stylesheet("%buttons.scss")
        assert not is_entry_stylesheet("notes.txt")

    def test_compile_and_minify(self, write):
        write("scss/_vars.scss", "$c: red;\n")
        main = write("scss/main.scss", '@import "vars";\n.a { .b { color: $c; } }\n')
        css = compile_stylesheet(main)
        assert ".a .b" in css
        assert "color: red" in css
        small = minify(css)
        assert "{color:red}" in small
        assert len(small) < len(css)
