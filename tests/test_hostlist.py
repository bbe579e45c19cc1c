import pytest

from pagepreview.config import Settings
from pagepreview.hosts.hostlist import HostList, hostname_of, parse_lines
from pagepreview.state import AVOID_JS, NEED_JS, PreviewState, query


def write_list(path, *lines):
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_parse_lines_filters_and_keeps_order():
    text = "  Zeta.COM \n# comment\n\n   \n.Foo.org\nalpha.net\n  #indented comment\n"
    assert parse_lines(text) == ("zeta.com", ".foo.org", "alpha.net")


@pytest.mark.parametrize("url,want", [
    ("https://WWW.Example.com/path?q=1", "www.example.com"),
    ("http://user:pw@host.example.org:8080/", "host.example.org"),
    ("www.example.com", "www.example.com"),
    ("", ""),
    ("   ", ""),
    ("http://[::1", ""),
])
def test_hostname_of(url, want):
    assert hostname_of(url) == want


class TestMatch:

    @pytest.fixture
    def hosts(self, tmp_path):
        path = write_list(tmp_path / "hosts.lst", "example.com", ".example.org")
        return HostList(str(path), reload_sec=60)

    def test_suffix_match(self, hosts):
        assert hosts.match("example.com")
        assert hosts.match("www.example.com")
        assert hosts.match("mobile.example.com")
        assert hosts.match("WWW.EXAMPLE.COM")

    def test_leading_dot_only_matches_subdomains(self, hosts):
        assert hosts.match("www.example.org")
        assert not hosts.match("example.org")

    def test_not_domain_boundary_aware(self, hosts):
        assert hosts.match("notexample.com")

    def test_no_match(self, hosts):
        assert not hosts.match("example.net")
        assert not hosts.match("")


class TestReload:

    def test_lazy_load_and_deadline(self, tmp_path):
        path = write_list(tmp_path / "hosts.lst", "first.com")
        hosts = HostList(str(path), reload_sec=60)
        assert hosts.entries == ()

        assert hosts.match("first.com", now=1000.0)
        assert hosts.next_reload == 1060.0

        write_list(path, "second.com")
        assert not hosts.match("second.com", now=1030.0)
        assert hosts.match("second.com", now=1061.0)
        assert not hosts.match("first.com", now=1062.0)

    def test_zero_interval_reloads_every_query(self, tmp_path):
        path = write_list(tmp_path / "hosts.lst", "first.com")
        hosts = HostList(str(path), reload_sec=0)
        assert hosts.match("first.com", now=1000.0)
        write_list(path, "second.com")
        assert hosts.match("second.com", now=1000.0)

    def test_missing_file(self, tmp_path):
        hosts = HostList(str(tmp_path / "missing.lst"))
        assert not hosts.match("example.com")
        assert len(hosts) == 0

    def test_read_failure_keeps_previous_list(self, tmp_path):
        path = write_list(tmp_path / "hosts.lst", "kept.com")
        hosts = HostList(str(path), reload_sec=1)
        assert hosts.match("kept.com", now=0.0)
        path.unlink()
        assert hosts.reload(now=10.0) is False
        assert hosts.match("kept.com", now=10.5)

    def test_emptied_file_replaces_list(self, tmp_path):
        path = write_list(tmp_path / "hosts.lst", "gone.com")
        hosts = HostList(str(path), reload_sec=1)
        assert hosts.match("gone.com", now=0.0)
        write_list(path, "# nothing left")
        assert not hosts.match("gone.com", now=5.0)
        assert hosts.entries == ()


class TestQuery:

    @pytest.fixture
    def state(self, tmp_path):
        write_list(tmp_path / "avoid.lst", "heavy-scripts.com")
        write_list(tmp_path / "need.lst", "spa.example")
        s = Settings(AVOID_JS_LIST=str(tmp_path / "avoid.lst"), NEED_JS_LIST=str(tmp_path / "need.lst"))
        return PreviewState.from_settings(s)

    def test_policies(self, state):
        assert query("https://www.heavy-scripts.com/x", AVOID_JS, state)
        assert not query("https://www.heavy-scripts.com/x", NEED_JS, state)
        assert query("https://app.spa.example/#/home", NEED_JS, state)

    def test_bare_host(self, state):
        assert query("heavy-scripts.com", AVOID_JS, state)

    def test_fails_closed(self, state):
        assert not query("https://www.heavy-scripts.com/", "bogus-policy", state)
        assert not query("", AVOID_JS, state)
        assert not query("http://[::1", AVOID_JS, state)
