from marketplace.order.pricing import quote


def test_quote_applies_configured_rates():
    result = quote(1000.0)
    assert result.delivery == 300.0
    assert result.platform == 20.0
    assert result.agent_commission == 50.0


def test_agent_commission_is_not_charged_to_buyer():
    assert quote(1000.0).total_amount == 1320.0


def test_fees_are_rounded_to_cents():
    result = quote(33.333)
    assert result.subtotal == 33.33
    assert result.platform == 0.67
