"""Document templates offered at the terminal and their prices."""

from decimal import Decimal

from notary_workflow.domain.errors import InvalidInputError

TEMPLATE_PRICES: dict[str, Decimal] = {
    "Declaración Jurada": Decimal("15.00"),
    "Contrato de Arriendo": Decimal("25.00"),
}


def price_for_template(template_name: str) -> Decimal:
    """Return the price of a template or raise for unknown names."""
    try:
        return TEMPLATE_PRICES[template_name]
    except KeyError:
        raise InvalidInputError(f"Unknown template: {template_name}") from None


def placeholder_document(template_name: str) -> str:
    """Return the base document text seeded into a new session."""
    return (
        f"Este es el contenido base para el documento: {template_name}. "
        "Por favor, revise y confirme los detalles con el cliente."
    )
