from pathlib import Path, PurePosixPath

from spindle import utils


def test_extract_frontmatter():
    data, body = utils.extract_frontmatter("---\naliases:\n  - /old/\n---\n<p>Hi</p>")
    assert data == {"aliases": ["/old/"]}
    assert body == "<p>Hi</p>"

    assert utils.extract_frontmatter("<p>No frontmatter</p>") == ({}, "<p>No frontmatter</p>")
    # A list is not a frontmatter mapping
    text = "---\n- a\n- b\n---\nbody"
    assert utils.extract_frontmatter(text) == ({}, text)
    broken = "---\nkey: [unclosed\n---\nbody"
    assert utils.extract_frontmatter(broken) == ({}, broken)


def test_path_helpers():
    assert utils.is_markdown(Path("page.md"))
    assert utils.is_markdown(Path("PAGE.MD"))
    assert not utils.is_markdown(Path("page.html"))

    assert utils.is_page_source(Path("index.html"))
    assert utils.is_page_source(Path("card.spear"))
    assert utils.is_page_source(Path("about.md"))
    assert not utils.is_page_source(Path("logo.svg"))

    assert utils.output_name(PurePosixPath("blog/post.md")) == PurePosixPath("blog/post.html")
    assert utils.output_name(PurePosixPath("card.spear")) == PurePosixPath("card.html")
    assert utils.output_name(PurePosixPath("index.html")) == PurePosixPath("index.html")


def test_is_within_compares_path_components():
    assert utils.is_within(Path("/a/b"), Path("/a"))
    assert utils.is_within(Path("/a"), Path("/a"))
    assert not utils.is_within(Path("/ab"), Path("/a"))
    assert not utils.is_within(Path("/a"), Path("/a/b"))


def test_is_components_path():
    assert utils.is_components_path(Path("/site/src/components"))
    assert utils.is_components_path(Path("/site/src/components/cards"))
    assert not utils.is_components_path(Path("/site/src/my-components"))


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "build"
    target.mkdir()
    (target / "old.txt").write_text("old", encoding="utf-8")
    utils.ensure_clean_dir(target)
    assert list(target.iterdir()) == []

    # fallback deletion path when rmtree is ineffective
    nested = tmp_path / "stubborn"
    nested.mkdir()
    subdir = nested / "inner"
    subdir.mkdir()
    (subdir / "file.txt").write_text("data", encoding="utf-8")
    original_rmtree = utils.shutil.rmtree

    def fake_rmtree(path, ignore_errors=False):
        return None  # does nothing so fallback is used

    utils.shutil.rmtree = fake_rmtree
    try:
        utils.ensure_clean_dir(nested)
    finally:
        utils.shutil.rmtree = original_rmtree
    assert nested.exists() and list(nested.iterdir()) == []

    missing = tmp_path / "missing-dir"
    utils.ensure_clean_dir(missing)
    assert missing.exists()


def test_join_root_url():
    assert (
        utils.join_root_url("https://example.com", "/posts/")
        == "https://example.com/posts/"
    )
    assert (
        utils.join_root_url("https://example.com/blog/", "posts/")
        == "https://example.com/blog/posts/"
    )
    assert utils.join_root_url("", "/posts/") == "/posts/"
