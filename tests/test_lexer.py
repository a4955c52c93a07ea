import pytest

from minishell.lexer import (
    Cluster,
    RedirectionError,
    Redirections,
    build_cluster,
    build_clusters,
    command_words,
    is_redirect,
    open_redirections,
    read_heredoc,
    strip_quoted_redirects,
)


@pytest.mark.parametrize("token", [">", "<", ">>", "<<"])
def test_is_redirect_true(token):
    assert is_redirect(token) is True


@pytest.mark.parametrize("token", ["echo", ">>>", "", "<>", None])
def test_is_redirect_false(token):
    assert is_redirect(token) is False


def test_command_words_removes_operators_and_targets():
    tokens = ["echo", "hi", ">", "out", "there", "<", "in"]
    assert command_words(tokens) == ["echo", "hi", "there"]


def test_command_words_leading_redirect():
    assert command_words(["<", "in", "cat"]) == ["cat"]


def test_command_words_only_redirects():
    assert command_words([">", "a", ">>", "b"]) == []


def test_strip_quoted_redirects():
    assert strip_quoted_redirects(['">"', "'<<'", "plain", '"quoted"']) == [
        ">",
        "<<",
        "plain",
        '"quoted"',
    ]


def test_read_heredoc_stops_at_delimiter():
    lines = iter(["a", "b", "EOF", "c"])
    assert read_heredoc("EOF", lines) == "a\nb\n"
    assert list(lines) == ["c"]


def test_read_heredoc_accepts_trailing_newlines():
    assert read_heredoc("END", ["x\n", "END\n"]) == "x\n"


def test_read_heredoc_without_delimiter_reads_all():
    assert read_heredoc("EOF", ["only"]) == "only\n"


def test_output_redirection_truncates(tmp_path):
    target = tmp_path / "out.txt"
    target.write_text("old content")
    with open_redirections(["echo", ">", str(target)]) as red:
        assert red.output_path == str(target)
        assert red.append is False
        red.stdout.write(b"new")
    assert target.read_text() == "new"


def test_append_redirection_keeps_content(tmp_path):
    target = tmp_path / "out.txt"
    target.write_text("first")
    with open_redirections([">>", str(target)]) as red:
        assert red.append is True
        red.stdout.write(b"second")
    assert target.read_text() == "firstsecond"


def test_later_output_wins_but_both_created(tmp_path):
    first = tmp_path / "a"
    second = tmp_path / "b"
    with open_redirections([">", str(first), ">", str(second)]) as red:
        red.stdout.write(b"data")
    assert first.exists()
    assert first.read_text() == ""
    assert second.read_text() == "data"


def test_input_redirection_reads_file(tmp_path):
    source = tmp_path / "in.txt"
    source.write_bytes(b"payload")
    with open_redirections(["cat", "<", str(source)]) as red:
        assert red.input_path == str(source)
        assert red.stdin.read() == b"payload"


def test_missing_input_raises(tmp_path):
    missing = tmp_path / "nope"
    with pytest.raises(RedirectionError) as info:
        open_redirections(["<", str(missing)])
    assert info.value.path == str(missing)


def test_missing_target_raises():
    with pytest.raises(RedirectionError):
        open_redirections(["echo", ">"])


def test_heredoc_content():
    red = open_redirections(["cat", "<<", "EOF"], ["one", "two", "EOF"])
    assert red.heredoc == "one\ntwo\n"
    assert red.uses_heredoc is True


def test_input_file_takes_precedence_over_heredoc(tmp_path):
    source = tmp_path / "in"
    source.write_text("x")
    with open_redirections(["<<", "EOF", "<", str(source)], ["h", "EOF"]) as red:
        assert red.heredoc == "h\n"
        assert red.uses_heredoc is False


def test_empty_heredoc_not_used():
    red = open_redirections(["<<", "EOF"], ["EOF"])
    assert red.uses_heredoc is False


def test_redirections_close_clears_streams(tmp_path):
    red = open_redirections([">", str(tmp_path / "f")])
    stream = red.stdout
    red.close()
    assert stream.closed
    assert red.stdout is None


def test_build_cluster(tmp_path):
    target = tmp_path / "o"
    with build_cluster(["echo", '">"', ">", str(target)]) as cluster:
        assert cluster.argv == ["echo", ">"]
        assert cluster.error is None
        assert cluster.redirections.output_path == str(target)


def test_build_clusters_keeps_failed_command(tmp_path):
    missing = str(tmp_path / "missing")
    clusters = build_clusters([["cat", "<", missing], ["wc"]])
    assert [c.argv for c in clusters] == [["cat"], ["wc"]]
    assert clusters[0].error.path == missing
    assert clusters[1].error is None
    for cluster in clusters:
        cluster.close()


def test_build_clusters_share_heredoc_lines():
    clusters = build_clusters(
        [["cat", "<<", "A"], ["cat", "<<", "B"]],
        ["first", "A", "second", "B"],
    )
    assert clusters[0].redirections.heredoc == "first\n"
    assert clusters[1].redirections.heredoc == "second\n"


def test_cluster_default_redirections():
    cluster = Cluster(["ls"])
    assert cluster.redirections == Redirections()
    assert cluster.redirections.uses_heredoc is False