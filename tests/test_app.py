import logging

import main


def test_app_logger_follows_module_naming():
    assert main.logger is logging.getLogger("main")


def test_root(client):
    assert client.get("/").status_code == 200


def test_unknown_route_is_plain_404(client):
    assert client.get("/no-such-thing").status_code == 404
