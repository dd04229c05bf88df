"""
Calcolo della ripartizione del valore di contratto nei tre termini
Progetto: SPK Tracker (Gestione Surat Perintah Kerja)

Funzioni pure, senza accesso al database.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

# Cifre decimali della minor unit per valuta (ISO 4217).
# Le valute non elencate usano 2 decimali.
CURRENCY_EXPONENTS: dict[str, int] = {
    "IDR": 0,
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "CLP": 0,
    "BHD": 3,
    "KWD": 3,
    "OMR": 3,
}
DEFAULT_EXPONENT = 2

# Tolleranza sulla somma delle percentuali
PERCENTAGE_TOLERANCE = Decimal("0.01")
# Decimali ammessi per le percentuali (scala delle colonne Numeric(5, 2))
PERCENTAGE_PLACES = 2
HUNDRED = Decimal("100")


def currency_exponent(currency: str) -> int:
    """Numero di decimali della minor unit della valuta."""
    return CURRENCY_EXPONENTS.get((currency or "").upper(), DEFAULT_EXPONENT)


def minor_unit(currency: str) -> Decimal:
    """Valore della minor unit (es. 1 per IDR, 0.01 per EUR)."""
    return Decimal(1).scaleb(-currency_exponent(currency))


def quantize_amount(value: Decimal, currency: str) -> Decimal:
    """Arrotonda un importo (ROUND_HALF_UP) alla minor unit della valuta."""
    return Decimal(value).quantize(minor_unit(currency), rounding=ROUND_HALF_UP)


def is_balanced(dp_pct: Decimal, progress_pct: Decimal, final_pct: Decimal) -> bool:
    """True se le tre percentuali sommano a 100 entro la tolleranza."""
    total = Decimal(dp_pct) + Decimal(progress_pct) + Decimal(final_pct)
    return abs(total - HUNDRED) < PERCENTAGE_TOLERANCE


@dataclass(frozen=True)
class PaymentSplit:
    """Importi dei tre termini di pagamento."""
    dp_amount: Decimal
    progress_amount: Decimal
    final_amount: Decimal

    @property
    def total(self) -> Decimal:
        return self.dp_amount + self.progress_amount + self.final_amount

    def for_term(self, term: str) -> Decimal:
        """Importo del termine indicato (dp, progress, final)."""
        term = getattr(term, "value", term)
        try:
            return {
                "dp": self.dp_amount,
                "progress": self.progress_amount,
                "final": self.final_amount,
            }[term]
        except KeyError:
            raise ValueError(f"Termine di pagamento sconosciuto: {term}") from None


def calculate_split(
    contract_value: Decimal,
    dp_pct: Decimal,
    progress_pct: Decimal,
    final_pct: Decimal,
    currency: str = "IDR",
) -> PaymentSplit:
    """
    Calcola gli importi dei tre termini: contract_value * pct / 100.

    Ogni importo è arrotondato alla minor unit della valuta. Se la ripartizione
    è bilanciata (somma 100 ± 0.01), il residuo di arrotondamento viene
    assorbito dall'ultimo termine non nullo (di norma il finale), così la
    somma coincide con il valore di contratto. Non verifica la somma delle
    percentuali: il chiamante deve aver già validato l'input.

    Args:
        contract_value: Valore del contratto
        dp_pct: Percentuale down payment
        progress_pct: Percentuale progress payment
        final_pct: Percentuale final payment
        currency: Codice valuta per l'arrotondamento

    Returns:
        PaymentSplit: Importi dei tre termini

    Example:
        >>> calculate_split(Decimal("100000000"), Decimal("30"), Decimal("40"), Decimal("30"))
        PaymentSplit(dp_amount=Decimal('30000000'), progress_amount=Decimal('40000000'), final_amount=Decimal('30000000'))
    """
    contract_value = Decimal(contract_value)

    def _amount(pct) -> Decimal:
        return quantize_amount(contract_value * Decimal(pct) / HUNDRED, currency)

    dp_amount = _amount(dp_pct)
    progress_amount = _amount(progress_pct)
    final_amount = _amount(final_pct)

    if is_balanced(dp_pct, progress_pct, final_pct):
        residual = quantize_amount(contract_value, currency) - (dp_amount + progress_amount + final_amount)
        # Il residuo va all'ultimo termine con percentuale non nulla
        if Decimal(final_pct) != 0:
            final_amount += residual
        elif Decimal(progress_pct) != 0:
            progress_amount += residual
        else:
            dp_amount += residual

    return PaymentSplit(
        dp_amount=dp_amount,
        progress_amount=progress_amount,
        final_amount=final_amount,
    )
