import pytest

from chairbook.domain.scheduling.pricing import calculate_final_price, default_discount


def test_cash_gets_default_discount():
    assert calculate_final_price(1000, "cash") == (900, 10.0)


@pytest.mark.parametrize("method", ["card", "transfer", None])
def test_other_methods_pay_list_price(method):
    assert default_discount(method) == 0
    assert calculate_final_price(1000, method) == (1000, 0)


def test_custom_discount_overrides_default():
    assert calculate_final_price(1000, "cash", 15) == (850, 15)
    assert calculate_final_price(1000, "card", 0) == (1000, 0)


def test_final_price_rounds_half_up():
    assert calculate_final_price(1005, "cash") == (905, 10.0)
    assert calculate_final_price(999, "cash") == (899, 10.0)


@pytest.mark.parametrize("discount", [-1, 101])
def test_discount_out_of_range_is_rejected(discount):
    with pytest.raises(ValueError):
        calculate_final_price(1000, "cash", discount)
