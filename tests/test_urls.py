from adcapture.urls import creative_name, document_url, is_remote_url


def test_document_url_turns_local_paths_into_file_uris(tmp_path):
    page = tmp_path / "ad.html"
    page.write_text("<html></html>")
    url = document_url(page)
    assert url.startswith("file://")
    assert url.endswith("/ad.html")


def test_document_url_keeps_remote_urls():
    assert document_url("https://example.com/ad/index.html") == "https://example.com/ad/index.html"


def test_is_remote_url():
    assert is_remote_url("http://x")
    assert is_remote_url("file:///tmp/a.html")
    assert not is_remote_url("creative/index.html")


def test_creative_name_for_paths_and_urls():
    assert creative_name("/tmp/summer_sale_300x250.html") == "summer_sale_300x250"
    assert creative_name("https://cdn.example.com/ads/spring.html?x=1") == "spring"
    assert creative_name("https://cdn.example.com/") == "cdn.example.com"
