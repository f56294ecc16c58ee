import asyncio
from pathlib import Path, PurePosixPath

from spindle.assembler import (
    alias_path,
    assemble_pages,
    generate_alias_pages,
    resolve_components,
)
from spindle.cms import ContentGenerator
from spindle.dom import parse_fragment
from spindle.log import SpindleLog
from spindle.settings import default_settings
from spindle.state import Component, Page, State


def component(tag, markup):
    return Component(
        fname=Path(f"{tag}.html"), tag_name=tag, raw_data=markup, node=parse_fragment(markup)
    )


def page(fname, markup, **frontmatter):
    return Page(
        fname=PurePosixPath(fname),
        node=parse_fragment(markup),
        frontmatter=frontmatter,
    )


def settings():
    return default_settings(Path("."))


def test_pages_are_resolved_with_two_passes(null_generator):
    state = State(
        components_list=[
            component("c-box", "<div><c-label></c-label></div>"),
            component("c-label", "<span>Y</span>"),
        ],
        pages_list=[page("index.html", "<main><c-box></c-box></main>")],
    )
    pages = asyncio.run(assemble_pages(state, null_generator, settings()))
    assert [p.fname for p in pages] == [PurePosixPath("index.html")]
    assert pages[0].node.decode() == "<main><div><span>Y</span></div></main>"
    assert [node.name for node in pages[0].child_nodes] == ["main"]


def test_third_level_reference_is_left_unexpanded(null_generator):
    state = State(
        components_list=[
            component("c-a", "<c-b></c-b>"),
            component("c-b", "<c-c></c-c>"),
            component("c-c", "<i>z</i>"),
        ],
        pages_list=[page("index.html", "<c-a></c-a>")],
    )
    pages = asyncio.run(assemble_pages(state, null_generator, settings()))
    assert pages[0].node.decode() == "<c-c></c-c>"


def test_resolving_components_first_covers_one_more_level(null_generator):
    state = State(
        components_list=[
            component("c-a", "<c-b></c-b>"),
            component("c-b", "<c-c></c-c>"),
            component("c-c", "<i>z</i>"),
        ],
        pages_list=[page("index.html", "<c-a></c-a>")],
    )
    state.components_list = asyncio.run(resolve_components(state, null_generator, settings()))
    assert [c.tag_name for c in state.components_list] == ["c-a", "c-b", "c-c"]
    assert state.components_list[0].raw_data == "<c-c></c-c>"
    assert state.components_list[1].raw_data == "<i>z</i>"
    assert state.components_list[0].props == {}

    pages = asyncio.run(assemble_pages(state, null_generator, settings()))
    assert pages[0].node.decode() == "<i>z</i>"


def test_route_aliases_follow_original_pages(null_generator):
    state = State(
        pages_list=[
            page("about.html", "<p>About</p>", aliases=["/company/", "legacy-about"]),
            page("contact.html", "<p>Contact</p>"),
        ]
    )
    pages = asyncio.run(generate_alias_pages(state, null_generator, settings()))
    assert [p.fname.as_posix() for p in pages] == [
        "about.html",
        "contact.html",
        "company/index.html",
        "legacy-about.html",
    ]
    assert pages[2].node.decode() == "<p>About</p>"
    assert pages[2].node is not pages[0].node


def test_alias_supersedes_page_with_same_path(null_generator):
    state = State(
        pages_list=[
            page("index.html", "<p>Old home</p>"),
            page("home.html", "<p>New home</p>", aliases=["/index.html"]),
        ]
    )
    pages = asyncio.run(generate_alias_pages(state, null_generator, settings()))
    assert [p.fname.as_posix() for p in pages] == ["index.html", "home.html"]
    assert pages[0].node.decode() == "<p>New home</p>"


def test_alias_template_is_materialized_per_content(blog_source):
    state = State(
        pages_list=[
            page("index.html", "<p>Home</p>"),
            page(
                "blog/[alias].html",
                '<article cms-target-content-type="blog"><h1>{%= blog_title %}</h1></article>',
            ),
        ]
    )
    pages = asyncio.run(generate_alias_pages(state, ContentGenerator(blog_source), settings()))
    assert [p.fname.as_posix() for p in pages] == [
        "index.html",
        "blog/hello.html",
        "blog/world.html",
    ]
    assert pages[1].node.decode() == "<article><h1>Hello</h1></article>"
    assert pages[2].node.decode() == "<article><h1>World</h1></article>"


def test_alias_template_without_content_type_is_kept(null_generator):
    state = State(pages_list=[page("blog/[alias].html", "<p>plain</p>")])
    pages = asyncio.run(generate_alias_pages(state, null_generator, settings()))
    assert [p.fname.as_posix() for p in pages] == ["blog/[alias].html"]


def test_alias_path_normalization():
    assert alias_path("/docs/") == PurePosixPath("docs/index.html")
    assert alias_path("about-us") == PurePosixPath("about-us.html")
    assert alias_path("/feed.xml") == PurePosixPath("feed.xml")
    assert alias_path("/") == PurePosixPath("index.html")
    assert alias_path("  ") is None
    assert alias_path("../outside") is None


def test_duplicate_output_paths_warn(null_generator, capsys):
    first = page("guide.html", "<p>html</p>")
    first.source = Path("src/pages/guide.html")
    second = page("guide.html", "<p>markdown</p>")
    second.source = Path("src/pages/guide.md")
    state = State(pages_list=[first, second, page("index.html", "<p>i</p>", aliases=["/guide"])])

    pages = asyncio.run(generate_alias_pages(state, null_generator, settings(), SpindleLog()))

    assert [p.fname.as_posix() for p in pages] == ["guide.html", "index.html"]
    assert pages[0].node.decode() == "<p>i</p>"
    err = capsys.readouterr().err
    assert err.count("Duplicate output path guide.html") == 1
    assert "src/pages/guide.md replaces src/pages/guide.html" in err
