"""Расчёт цен товара для админки.

Цена в фиде указана в местной валюте. Базовая цена (USD) получается
делением на курс; цена продажи считается по правилу наценки,
"старая" цена — цена продажи плюс случайная надбавка.

Правило наценки:
    base < 20.00  -> list = base + 20.00
    base >= 20.00 -> list = base × 2
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")

# Порог и надбавка правила наценки
MARKUP_THRESHOLD = Decimal("20.00")
LOW_PRICE_MARKUP = Decimal("20.00")
HIGH_PRICE_MULTIPLIER = Decimal("2")

# Диапазон надбавки для compare-at цены: [5, 20)
COMPARE_AT_MIN = 5.0
COMPARE_AT_MAX = 20.0


def round_money(value: Decimal) -> Decimal:
    """Округляет до центов (ROUND_HALF_UP)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: object) -> Decimal:
    """Приводит число или строку из фида к Decimal.

    Строки допускают запятую в качестве десятичного разделителя
    и пробелы-разделители разрядов ("1 299,90").

    Raises:
        ValueError: Если значение не число.
    """
    if isinstance(value, bool):
        raise ValueError(f"Некорректная цена: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace(" ", "").replace(" ", "")
        cleaned = cleaned.replace(",", ".")
        try:
            result = Decimal(cleaned)
        except ArithmeticError:
            raise ValueError(f"Некорректная цена: {value!r}") from None
    else:
        raise ValueError(f"Некорректная цена: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Некорректная цена: {value!r}")
    return result


def convert_to_base(raw_price: Decimal, exchange_rate: Decimal) -> Decimal:
    """Переводит цену из местной валюты в базовую: round(raw / rate, 2).

    Args:
        raw_price: Цена из фида (местная валюта), >= 0.
        exchange_rate: Единиц местной валюты за 1 USD, > 0.

    Raises:
        ValueError: Отрицательная цена или неположительный курс.
    """
    if exchange_rate <= 0:
        raise ValueError(f"Курс должен быть больше нуля: {exchange_rate}")
    if raw_price < 0:
        raise ValueError(f"Цена не может быть отрицательной: {raw_price}")
    return round_money(raw_price / exchange_rate)


def list_price_for(base: Decimal) -> Decimal:
    """Цена продажи по правилу наценки (строгое сравнение с порогом)."""
    if base < MARKUP_THRESHOLD:
        return round_money(base + LOW_PRICE_MARKUP)
    return round_money(base * HIGH_PRICE_MULTIPLIER)


@dataclass(frozen=True)
class PriceSet:
    """Цены одного товара.

    Attributes:
        base_price: Цена в базовой валюте до наценки.
        cost_price: Себестоимость (равна базовой цене).
        list_price: Цена продажи.
        compare_at_price: Зачёркнутая цена.
    """

    base_price: Decimal
    cost_price: Decimal
    list_price: Decimal
    compare_at_price: Decimal


class PricingPolicy(ABC):
    """Стратегия расчёта цен из цены фида и курса."""

    @abstractmethod
    def derive(
        self,
        raw_price: Decimal,
        exchange_rate: Decimal,
        rng: random.Random,
    ) -> PriceSet:
        """Рассчитывает набор цен для одного товара."""


class MarkupPricingPolicy(PricingPolicy):
    """Политика по умолчанию: конвертация по курсу и ступенчатая наценка."""

    def derive(
        self,
        raw_price: Decimal,
        exchange_rate: Decimal,
        rng: random.Random,
    ) -> PriceSet:
        base = convert_to_base(raw_price, exchange_rate)
        list_price = list_price_for(base)
        surcharge = Decimal(
            str(COMPARE_AT_MIN + rng.random() * (COMPARE_AT_MAX - COMPARE_AT_MIN))
        )
        # округляется сумма, а не надбавка
        compare_at = round_money(list_price + surcharge)

        return PriceSet(
            base_price=base,
            cost_price=base,
            list_price=list_price,
            compare_at_price=compare_at,
        )
