from decimal import Decimal

from price_ledger.application.utils.price_delta import apply_price_delta
from price_ledger.domain.entities.price_change import ChangeKind, ChangeSpecification


def test_percentage_increase():
    spec = ChangeSpecification(kind=ChangeKind.increase, amount=Decimal("10"), is_percentage=True)
    assert apply_price_delta(Decimal("100"), spec) == Decimal("110")


def test_fixed_decrease():
    spec = ChangeSpecification(kind=ChangeKind.decrease, amount=Decimal("25.50"), is_percentage=False)
    assert apply_price_delta(Decimal("100"), spec) == Decimal("74.50")


def test_decrease_is_clamped_at_zero():
    """A 150% decrease on 100 yields 0, not -50."""
    spec = ChangeSpecification(kind=ChangeKind.decrease, amount=Decimal("150"), is_percentage=True)
    assert apply_price_delta(Decimal("100"), spec) == Decimal("0")

    fixed = ChangeSpecification(kind=ChangeKind.decrease, amount=Decimal("500"), is_percentage=False)
    assert apply_price_delta(Decimal("100"), fixed) == Decimal("0")


def test_percentage_of_zero_price_stays_zero():
    spec = ChangeSpecification(kind=ChangeKind.increase, amount=Decimal("20"), is_percentage=True)
    assert apply_price_delta(Decimal("0"), spec) == Decimal("0")


def test_no_binary_float_drift():
    spec = ChangeSpecification(kind=ChangeKind.increase, amount=0.1, is_percentage=False)
    assert apply_price_delta(Decimal("0.2"), spec) == Decimal("0.3")
