import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from extensions import db
from payments.bepaid import BePaidClient, BePaidError
from payments.billing import BILL_FAILED_MESSAGE, build_bill_request, create_bepaid_bill
from users.models import User, set_config
from users.service import save_member


@pytest.fixture
def billing_on(app):
    app.config.update(
        BILLING_ENABLED=True,
        BEPAID_BASE_URL="https://bepaid.test",
        BEPAID_SHOP_ID="361",
        BEPAID_SECRET="s3cret",
        BEPAID_SERVICE_NO="99",
    )
    return app


def _response(status_code=200, json_body=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_body if json_body is not None else {}
    resp.text = text
    return resp


def test_bill_request_shape(app, make_member, tariff):
    tariff.monthly_price = 45.5
    db.session.commit()
    member = make_member(first_name="Ada", last_name="Lovelace", email="ada@example.com")

    bill = build_bill_request(member)["request"]

    assert bill["amount"] == 4550
    assert bill["currency"] == "BYN"
    assert bill["email"] == "ada@example.com"
    assert bill["order_id"] == member.id
    assert bill["customer"] == {"first_name": "Ada", "last_name": "Lovelace"}
    assert bill["payment_method"]["type"] == "erip"
    assert bill["payment_method"]["account_number"] == member.id


def test_bill_amount_is_zero_without_tariff(make_member):
    member = make_member(with_tariff=False)
    assert build_bill_request(member)["request"]["amount"] == 0


def test_service_number_can_come_from_system_config(billing_on, make_member):
    set_config("bePaid_serviceNo", "1234")
    member = make_member()
    assert build_bill_request(member)["request"]["payment_method"]["service_no"] == "1234"


def test_bill_is_posted_after_save(billing_on, make_member):
    with patch("payments.bepaid.requests.post", return_value=_response(json_body={"transaction": {}})) as post:
        member = make_member()

    post.assert_called_once()
    args, kwargs = post.call_args
    assert args[0] == "https://bepaid.test/beyag/payments"
    assert kwargs["auth"] == ("361", "s3cret")
    assert kwargs["json"]["request"]["order_id"] == member.id
    assert member.errors == []


def test_gateway_failure_is_non_fatal(billing_on, make_member, caplog):
    caplog.set_level(logging.ERROR, logger="payments.billing")
    with patch("payments.bepaid.requests.post", return_value=_response(422, text='{"errors": "bad"}')):
        member = make_member(email="still-saved@example.com")

    assert member.errors == [BILL_FAILED_MESSAGE]
    assert User.query.filter_by(email="still-saved@example.com").count() == 1
    assert '{"errors": "bad"}' in caplog.text


def test_network_error_is_non_fatal(billing_on, make_member):
    with patch("payments.bepaid.requests.post", side_effect=requests.ConnectionError("down")):
        member = make_member()
        save_member(member, {"hacker_comment": "again"})

    assert member.hacker_comment == "again"
    assert BILL_FAILED_MESSAGE in member.errors


def test_unexpected_error_while_billing_is_non_fatal(billing_on, make_member, caplog):
    caplog.set_level(logging.ERROR, logger="payments.billing")
    with patch("payments.billing.build_bill_request", side_effect=KeyError("service_no")):
        member = make_member(email="kept@example.com")

    assert member.errors == [BILL_FAILED_MESSAGE]
    assert User.query.filter_by(email="kept@example.com").count() == 1
    assert "service_no" in caplog.text


def test_billing_disabled_makes_no_calls(app, make_member):
    with patch("payments.bepaid.requests.post") as post:
        make_member()
    post.assert_not_called()


def test_missing_credentials_fail_softly(billing_on, make_member):
    billing_on.config["BEPAID_SECRET"] = None
    with patch("payments.bepaid.requests.post") as post:
        member = make_member()
    post.assert_not_called()
    assert member.errors == [BILL_FAILED_MESSAGE]


def test_client_requires_configuration():
    with pytest.raises(BePaidError):
        BePaidClient("https://bepaid.test", None, "secret")


def test_client_raises_with_http_body():
    client = BePaidClient("https://bepaid.test/", "1", "2")
    with patch("payments.bepaid.requests.post", return_value=_response(500, text="boom")):
        with pytest.raises(BePaidError) as exc:
            client.post_bill({"request": {}})
    assert exc.value.http_body == "boom"
    assert exc.value.status_code == 500
