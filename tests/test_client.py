import pytest

from wikiclient.client import WikiClient, check_session
from wikiproto.envelope import SessionExpired, WikiReply
from wikiproto.errors import ConnectError, DecodeError, EmptyResponseError


def make_client(path, session_id=None, **kwargs):
    return WikiClient(path, "mywiki", "secret", session_id, **kwargs)


def test_page_returns_flattened_response(wiki_server):
    wiki_server.queue(b'["page",{"title":"Home","content":"hi"}]\n')
    client = make_client(wiki_server.path)

    res = client.page("Home")

    assert res == {"response": "page", "title": "Home", "content": "hi"}
    assert client.connected is False


def test_command_line_is_exact(wiki_server):
    client = make_client(wiki_server.path)
    client.image("logo.png", 100, 50)

    [lines] = wiki_server.connections
    assert lines[-1] == b'["image",{"name":"logo.png","width":100,"height":50,"close":true}]'
    assert len(lines) == 2


def test_each_command_uses_a_new_connection(wiki_server):
    client = make_client(wiki_server.path, session_id="sess-1")
    client.page("Home")
    assert client.connected is False
    client.page_list()

    assert len(wiki_server.connections) == 2
    for msgs in wiki_server.messages:
        assert [m.tag for m in msgs][:2] == ["wiki", "resume"]
        assert [m.tag for m in msgs].count("resume") == 1


def test_login_skips_resume_and_adopts_session(wiki_server):
    wiki_server.queue(b'["login",{"logged_in":1}]', b'["page",{"title":"Home"}]')
    client = make_client(wiki_server.path, session_id="old")

    res = client.login("alice", "pw", "new-session")
    assert res == {"response": "login", "logged_in": 1}
    assert client.session_id == "new-session"

    client.page("Home")
    login_msgs, page_msgs = wiki_server.messages
    assert [m.tag for m in login_msgs] == ["wiki", "login"]
    assert login_msgs[1].options == {
        "username": "alice",
        "password": "pw",
        "session_id": "new-session",
        "close": True,
    }
    assert page_msgs[1].options == {"session_id": "new-session"}


def test_failed_login_keeps_old_session(wiki_server):
    wiki_server.queue(b'["login",{"error":"Bad password"}]')
    client = make_client(wiki_server.path, session_id="old")

    res = client.login("alice", "wrong", "new-session")

    assert WikiClient.is_error(res) is True
    assert client.session_id == "old"


def test_session_expiry_calls_callback_once(wiki_server):
    wiki_server.queue(b'["page",{"title":"Home","login_again":true}]')
    calls = []
    client = make_client(wiki_server.path, session_id="stale", login_again_cb=lambda: calls.append(1))

    assert client.page("Home") is None
    assert calls == [1]


def test_session_expiry_without_callback(wiki_server):
    wiki_server.queue(b'["page",{"login_again":1}]')
    client = make_client(wiki_server.path, session_id="stale")

    assert client.page("Home") is None


def test_dispatch_returns_tagged_expiry(wiki_server):
    wiki_server.queue(b'["page",{"login_again":true}]')
    calls = []
    client = make_client(wiki_server.path, login_again_cb=lambda: calls.append(1))

    result = client.dispatch("page", {"name": "Home"})

    assert isinstance(result, SessionExpired)
    assert result.command == "page"
    assert calls == []


def test_check_session():
    assert check_session(WikiReply("ping", {})) == {"response": "ping"}
    assert isinstance(check_session(WikiReply("ping", {"login_again": True})), SessionExpired)


def test_truncated_reply_is_decode_error(wiki_server):
    wiki_server.queue(b'["page",{"title":"Ho')
    client = make_client(wiki_server.path)

    with pytest.raises(DecodeError) as exc_info:
        client.page("Home")

    assert exc_info.value.command == "page"
    assert client.connected is False


def test_empty_reply(wiki_server):
    wiki_server.queue(b"")
    client = make_client(wiki_server.path)

    with pytest.raises(EmptyResponseError):
        client.ping()


def test_connect_failure_propagates(socket_dir):
    client = make_client(str(socket_dir / "missing.sock"))

    with pytest.raises(ConnectError):
        client.page("Home")
    assert client.connected is False


def test_business_error_is_returned(wiki_server):
    wiki_server.queue(b'["page",{"error":"Page does not exist"}]')
    client = make_client(wiki_server.path)

    res = client.page("Nope")

    assert res == {"response": "page", "error": "Page does not exist"}
    assert WikiClient.is_error(res) is True
    assert WikiClient.is_error({"response": "page"}) is False
    assert WikiClient.is_error(None) is False


def test_options_round_trip(wiki_server):
    wiki_server.echo = True
    client = make_client(wiki_server.path)
    options = {
        "name": "Home",
        "count": 3,
        "ratio": 0.5,
        "flag": False,
        "nothing": None,
        "tags": ["a", "b", 1],
        "nested": {"x": {"y": [True, None]}},
        "unicode": "café ☃",
    }

    res = client.dispatch("page_save", options)

    assert res.pop("response") == "page_save"
    assert res.pop("close") is True
    assert res == options


def test_raw_wiki_command_skips_handshake(wiki_server):
    client = make_client(wiki_server.path, session_id="sess-1")
    client.dispatch("wiki", {"name": "mywiki", "password": "secret"})

    [msgs] = wiki_server.messages
    assert [m.tag for m in msgs] == ["wiki"]
    assert msgs[0].closes is True


@pytest.mark.parametrize("call,tag,options", [
    (lambda c: c.page("Home"), "page", {"name": "Home"}),
    (lambda c: c.page_code("Home", True), "page_code", {"name": "Home", "display_page": True}),
    (lambda c: c.page_list(), "page_list", {"sort": "m-"}),
    (lambda c: c.model_code("nav", False), "model_code", {"name": "nav", "display_model": False}),
    (lambda c: c.model_list("a+"), "model_list", {"sort": "a+"}),
    (lambda c: c.cat_posts("news", 2), "cat_posts", {"name": "news", "page_n": 2}),
    (lambda c: c.cat_list(), "cat_list", {"sort": "m-"}),
    (lambda c: c.ping(), "ping", {}),
    (lambda c: c.page_save("Home", "text", "edit"), "page_save", {"name": "Home", "content": "text", "message": "edit"}),
    (lambda c: c.page_del("Old"), "page_del", {"name": "Old"}),
    (lambda c: c.page_move("A", "B"), "page_move", {"name": "A", "new_name": "B"}),
    (lambda c: c.model_save("nav", "m", "edit"), "model_save", {"name": "nav", "content": "m", "message": "edit"}),
    (lambda c: c.model_del("nav"), "model_del", {"name": "nav"}),
    (lambda c: c.model_move("nav", "menu"), "model_move", {"name": "nav", "new_name": "menu"}),
])
def test_command_surface(wiki_server, call, tag, options):
    client = make_client(wiki_server.path)
    call(client)

    [msgs] = wiki_server.messages
    command = msgs[-1]
    assert command.tag == tag
    assert command.options == {**options, "close": True}


@pytest.mark.parametrize("echoed", [b"42", b"null", b'""', b'["x"]'])
def test_login_ignores_non_string_session_echo(wiki_server, echoed):
    wiki_server.queue(b'["login",{"session_id":' + echoed + b'}]', b'["page",{}]')
    client = make_client(wiki_server.path)

    client.login("alice", "pw", "sent-session")
    assert client.session_id == "sent-session"

    client.page("Home")
    page_msgs = wiki_server.messages[-1]
    assert page_msgs[1].options == {"session_id": "sent-session"}


def test_login_adopts_session_echoed_by_server(wiki_server):
    wiki_server.queue(b'["login",{"session_id":"server-session"}]')
    client = make_client(wiki_server.path)

    client.login("alice", "pw", "sent-session")

    assert client.session_id == "server-session"
