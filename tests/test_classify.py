"""Tests for path classification."""

from __future__ import annotations

from sitedeploy.deploy.classify import PathClass, classify_path, classify_paths


def test_classify_path_rules():
    assert classify_path("./index.html") is PathClass.HOMEPAGE
    assert classify_path("./blog/index.html") is PathClass.PAGES
    assert classify_path("./about.html") is PathClass.PAGES
    assert classify_path("./css/site.css") is PathClass.ASSETS
    assert classify_path("./page.htm") is PathClass.ASSETS


def test_classify_paths_partitions_input():
    paths = {"./index.html", "./about.html", "./a.css", "./img/logo.png", "./docs/index.html"}

    classified = classify_paths(paths)

    assert classified.assets | classified.pages | classified.homepage == paths
    assert not (classified.assets & classified.pages)
    assert not (classified.assets & classified.homepage)
    assert not (classified.pages & classified.homepage)
    assert len(classified) == len(paths)


def test_classify_paths_iterates_in_upload_order():
    classified = classify_paths({"./index.html", "./a.css", "./b.html"})

    assert [path_class for path_class, _ in classified] == [
        PathClass.ASSETS,
        PathClass.PAGES,
        PathClass.HOMEPAGE,
    ]
    assert classified.counts() == {"assets": 1, "pages": 1, "homepage": 1}


def test_classify_paths_respects_custom_homepage():
    classified = classify_paths({"./index.html", "./home.html"}, homepage="./home.html")

    assert classified.homepage == {"./home.html"}
    assert classified.pages == {"./index.html"}


def test_classify_paths_empty():
    classified = classify_paths([])

    assert len(classified) == 0
