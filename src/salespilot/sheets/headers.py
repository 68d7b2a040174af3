"""Header resolution: map free-form spreadsheet column names to canonical fields.

Resolution is a pure function of the header list:

1. normalize each header (lower-case, trimmed, diacritics stripped)
2. exact match against the alias table
3. substring containment, in either direction, against the field's canonical label
4. otherwise the field is absent

Ties always go to the left-most column.
"""

import unicodedata
from typing import Callable, Sequence

from salespilot.models.enums import CanonicalField

ALIAS_TABLE_VERSION = 2

# Canonical label of each field, already normalized
CANONICAL_LABELS: dict[CanonicalField, str] = {
    CanonicalField.SALE_DATE: "data da venda",
    CanonicalField.SALE_TIME: "hora da venda",
    CanonicalField.MERCHANT_NAME: "estabelecimento",
    CanonicalField.TAX_ID: "cpf/cnpj",
    CanonicalField.PAYMENT_METHOD: "forma de pagamento",
    CanonicalField.INSTALLMENT_COUNT: "quantidade total de parcelas",
    CanonicalField.CARD_BRAND: "bandeira",
    CanonicalField.GROSS_AMOUNT: "valor bruto",
    CanonicalField.SALE_STATUS: "status da venda",
    CanonicalField.SETTLEMENT_TYPE: "tipo de lancamento",
    CanonicalField.SETTLEMENT_DATE: "data do lancamento",
    CanonicalField.DEVICE_ID: "numero da maquina",
    CanonicalField.NET_AMOUNT: "valor liquido",
    CanonicalField.FEE_AMOUNT: "taxa total",
    CanonicalField.SALE_COUNT: "quantidade de vendas",
}

# Known synonyms per field, normalized. The canonical label is always included.
ALIASES: dict[CanonicalField, tuple[str, ...]] = {
    CanonicalField.SALE_DATE: (
        "data da venda",
        "data venda",
        "data",
        "data de venda",
        "date",
    ),
    CanonicalField.SALE_TIME: (
        "hora da venda",
        "hora venda",
        "hora",
        "hora de venda",
        "time",
        "horario",
    ),
    CanonicalField.MERCHANT_NAME: (
        "estabelecimento",
        "loja",
        "store",
        "nome estabelecimento",
    ),
    CanonicalField.TAX_ID: (
        "cpf/cnpj",
        "cpf cnpj",
        "cpf",
        "cnpj",
        "cpf/cnpj do estabelecimento",
        "cpf cnpj estabelecimento",
    ),
    CanonicalField.PAYMENT_METHOD: (
        "forma de pagamento",
        "forma pagamento",
        "pagamento",
        "payment",
        "tipo pagamento",
    ),
    CanonicalField.INSTALLMENT_COUNT: (
        "quantidade total de parcelas",
        "quantidade parcelas",
        "parcelas",
        "qtd parcelas",
        "total parcelas",
        "installments",
    ),
    CanonicalField.CARD_BRAND: (
        "bandeira",
        "bandeira cartao",
        "cartao",
        "card",
        "brand",
    ),
    CanonicalField.GROSS_AMOUNT: (
        "valor bruto",
        "valor",
        "bruto",
        "total",
    ),
    CanonicalField.SALE_STATUS: (
        "status da venda",
        "status venda",
        "status",
        "status de venda",
        "situacao",
    ),
    CanonicalField.SETTLEMENT_TYPE: (
        "tipo de lancamento",
        "tipo lancamento",
        "lancamento",
    ),
    CanonicalField.SETTLEMENT_DATE: (
        "data do lancamento",
        "data lancamento",
        "data de lancamento",
    ),
    CanonicalField.DEVICE_ID: (
        "numero da maquina",
        "numero maquina",
        "num maquina",
        "maquina",
        "terminal",
        "numero do terminal",
    ),
    CanonicalField.NET_AMOUNT: (
        "valor liquido",
        "liquido",
        "valor liquido da venda",
    ),
    CanonicalField.FEE_AMOUNT: (
        "taxa total",
        "taxa",
        "taxas",
        "mdr",
        "taxa mdr",
    ),
    CanonicalField.SALE_COUNT: (
        "quantidade de vendas",
        "quantidade vendas",
        "qtd vendas",
        "quantidade",
        "qtd",
    ),
}

HeaderPredicate = Callable[[str], bool]

# Every normalized alias of every field; these headers never match by containment
KNOWN_ALIASES: frozenset[str] = frozenset(
    alias
    for field, aliases in ALIASES.items()
    for alias in (*aliases, CANONICAL_LABELS[field])
)


def normalize_header(name: object) -> str:
    """Lower-case, trim and strip diacritics ("Número da Máquina" -> "numero da maquina")."""
    text = "" if name is None else str(name)
    decomposed = unicodedata.normalize("NFD", text.lower().strip())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def resolve_header(headers: Sequence[str], target: CanonicalField) -> str | None:
    """
    Return the original header string that carries `target`, or None.

    Alias matches win over containment matches; within each stage the
    left-most column wins. A header that is an exact alias of another field
    belongs to that field and is never a containment match.
    """
    normalized = [normalize_header(h) for h in headers]

    aliases = set(ALIASES.get(target, ()))
    aliases.add(CANONICAL_LABELS[target])
    for original, norm in zip(headers, normalized):
        if norm in aliases:
            return original

    label = CANONICAL_LABELS[target]
    for original, norm in zip(headers, normalized):
        if not norm or norm in KNOWN_ALIASES:
            continue
        if label in norm or norm in label:
            return original

    return None


def resolve_all(headers: Sequence[str]) -> dict[CanonicalField, str | None]:
    """Resolve every canonical field at once."""
    return {field: resolve_header(headers, field) for field in CanonicalField}


# ── Tiered column search for totals ─────────────────────────────────────
#
# Totals are summed from the raw sheet using a stricter search than
# resolve_header: exact names first, then "contains both keywords", then a
# loose last resort. Each tier is scanned left to right.


def _equals(*names: str) -> HeaderPredicate:
    return lambda norm: norm in names


def _contains_all(*words: str, excluding: tuple[str, ...] = ()) -> HeaderPredicate:
    return lambda norm: all(w in norm for w in words) and not any(x in norm for x in excluding)


def _contains_any(*words: str) -> HeaderPredicate:
    return lambda norm: any(w in norm for w in words)


TOTAL_COLUMN_TIERS: dict[CanonicalField, tuple[HeaderPredicate, ...]] = {
    CanonicalField.SALE_COUNT: (
        _equals("quantidade de vendas", "quantidade vendas", "qtd vendas"),
        _contains_all("quantidade", "venda"),
        _equals("quantidade", "qtd"),
    ),
    CanonicalField.GROSS_AMOUNT: (
        _equals("valor bruto"),
        _contains_all("valor", "bruto", excluding=("liquido",)),
        _contains_all("valor", excluding=("liquido", "taxa")),
    ),
    CanonicalField.NET_AMOUNT: (
        _equals("valor liquido"),
        _contains_all("valor", "liquido"),
        _contains_all("liquido"),
    ),
    CanonicalField.FEE_AMOUNT: (
        _equals("taxa total"),
        _contains_all("taxa", "total"),
        _equals("taxa"),
        _contains_all("taxa"),
    ),
    CanonicalField.MERCHANT_NAME: (_contains_any("estabelecimento", "loja"),),
    CanonicalField.PAYMENT_METHOD: (_contains_any("pagamento", "forma"),),
}


def find_total_column(headers: Sequence[str], target: CanonicalField) -> str | None:
    """Find the column a total should be summed from, using the tiered search."""
    tiers = TOTAL_COLUMN_TIERS.get(target)
    if tiers is None:
        return resolve_header(headers, target)

    normalized = [normalize_header(h) for h in headers]
    for predicate in tiers:
        for original, norm in zip(headers, normalized):
            if predicate(norm):
                return original
    return None
