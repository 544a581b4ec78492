import pytest

from esp_client import (
    DailyStat,
    Domain,
    EmailAddress,
    EmailMessage,
    IPPool,
    IPPoolCreateRequest,
    Recipient,
    RoutingStrategy,
    SubAccount,
)


def test_ip_pool_request_rejects_non_positive_warmup():
    with pytest.raises(ValueError):
        IPPoolCreateRequest(name='Pool', member_ips=['203.0.113.10'], warmup_interval=0)


def test_email_message_omits_unset_optionals():
    message = EmailMessage(
        from_address=EmailAddress('from@yourdomain.com'),
        to=[Recipient('to@example.com')],
        subject='Hi',
    )

    payload = message.to_dict()

    assert set(payload) == {'from', 'to', 'subject', 'trackOpens', 'trackClicks'}
    assert payload['from'] == {'email': 'from@yourdomain.com'}


def test_pool_name_is_sent_when_set():
    message = EmailMessage(EmailAddress('f@x.com'), [Recipient('t@x.com')], 'Hi', ippool='Pool A')
    assert message.to_dict()['ippool'] == 'Pool A'


def test_sub_account_defaults_to_regular():
    assert SubAccount.from_dict({'id': 1}).type_label == 'Regular'
    assert SubAccount.from_dict({'id': 1, 'type': 1}).type_label == 'Plus'


def test_domain_without_dkim():
    domain = Domain.from_dict({'id': 3, 'name': 'yourdomain.com', 'verified': True})
    assert domain.dkim_record is None
    assert domain.verified is True


def test_daily_stat_without_counts():
    assert DailyStat.from_dict({'date': '2026-10-19'}).stat is None


def test_ip_pool_routing_labels():
    assert IPPool(id=1, routing_strategy=int(RoutingStrategy.EMAIL_PROVIDER)).routing_label == 'Email Provider'
    assert IPPool.from_dict({'id': 1, 'routingStrategy': 0, 'ips': None}).member_ips == []
