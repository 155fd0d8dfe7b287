import httpx
import pytest

from checkout import StripeCheckout
from errors import InvalidInput, Upstream


def _provider(handler):
    return StripeCheckout("sk_test", api_base="https://stripe.test/v1",
                          transport=httpx.MockTransport(handler))


def test_retrieve_outcome_reads_session():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={
            "payment_status": "paid",
            "payment_intent": "pi_42",
            "amount_total": 2500,
            "customer_details": {"email": "giver@example.com"},
        })

    outcome = _provider(handler).retrieve_outcome("cs_test_1")

    assert outcome.paid is True
    assert outcome.transaction_id == "pi_42"
    assert outcome.amount == 2500
    assert outcome.payer_email == "giver@example.com"
    assert seen[0].method == "GET"
    assert seen[0].url.raw_path == b"/v1/checkout/sessions/cs_test_1"
    assert seen[0].headers["Authorization"] == "Bearer sk_test"


@pytest.mark.parametrize(
    "session_id,raw_path",
    [
        ("cs_1/../../customers", b"/v1/checkout/sessions/cs_1%2F..%2F..%2Fcustomers"),
        ("cs_1?expand=x", b"/v1/checkout/sessions/cs_1%3Fexpand%3Dx"),
    ],
)
def test_session_id_stays_one_path_segment(session_id, raw_path):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"payment_status": "unpaid"})

    _provider(handler).retrieve_outcome(session_id)

    assert seen[0].url.raw_path == raw_path
    assert seen[0].url.query == b""


def test_create_checkout_posts_form():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"url": "https://checkout.stripe.test/c/1"})

    url = _provider(handler).create_checkout(
        2500, "giver@example.com", "https://site/ok", "https://site/cancel"
    )

    assert url == "https://checkout.stripe.test/c/1"
    body = seen[0].content.decode()
    assert "line_items%5B0%5D%5Bprice_data%5D%5Bunit_amount%5D=2500" in body
    assert "customer_email=giver%40example.com" in body


def test_unknown_session_is_invalid_input():
    def handler(request):
        return httpx.Response(404, json={"error": {"message": "No such checkout.session"}})

    with pytest.raises(InvalidInput):
        _provider(handler).retrieve_outcome("cs_missing")


def test_provider_outage_is_upstream():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(Upstream):
        _provider(handler).retrieve_outcome("cs_1")

    def server_error(request):
        return httpx.Response(500, json={"error": {"message": "boom"}})

    with pytest.raises(Upstream):
        _provider(server_error).retrieve_outcome("cs_1")
