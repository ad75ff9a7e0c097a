"""
Contract Renderer

Pure function from ContractData to the HTML contract document.
The layout lives in app/templates/contract.html; labels are translated here.
"""

from decimal import Decimal
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .contract_data import ContractData

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
CONTRACT_TEMPLATE = "contract.html"

DEFAULT_PRIMARY_COLOR = "#1f4e79"
DEFAULT_SECONDARY_COLOR = "#f2f2f2"

LABELS = {
    "es": {
        "title": "Contrato de alquiler",
        "contract_number": "Nº de contrato",
        "contract_date": "Fecha",
        "version": "Versión",
        "customer": "Datos del arrendatario",
        "full_name": "Nombre completo",
        "dni": "DNI/NIE",
        "phone": "Teléfono",
        "email": "Email",
        "address": "Dirección",
        "driver_license": "Permiso de conducir",
        "rental": "Datos del alquiler",
        "pickup": "Recogida",
        "return": "Devolución",
        "location": "Lugar",
        "days": "Días",
        "vehicles": "Vehículos",
        "registration": "Matrícula",
        "vehicle": "Vehículo",
        "price_per_day": "Precio/día",
        "total": "Total",
        "delivery_inspection": "Inspección de entrega",
        "return_inspection": "Inspección de devolución",
        "odometer": "Kilometraje",
        "fuel": "Combustible",
        "condition": "Estado",
        "notes": "Observaciones",
        "photos": "Fotos",
        "drivers": "Conductores adicionales",
        "extras": "Extras",
        "upgrades": "Mejoras",
        "description": "Concepto",
        "unit_price": "Precio unitario",
        "quantity": "Cantidad",
        "subtotal": "Base imponible",
        "tax": "IVA",
        "total_price": "Total (IVA incluido)",
        "comments": "Comentarios especiales",
        "inspection_link": "Consulte las fotos de inspección en",
        "signature": "Firma del arrendatario",
        "signed_on": "Firmado el",
        "at": "a las",
        "ip": "IP",
        "pending_signature": "Pendiente de firma",
    },
    "en": {
        "title": "Rental agreement",
        "contract_number": "Contract no.",
        "contract_date": "Date",
        "version": "Version",
        "customer": "Renter details",
        "full_name": "Full name",
        "dni": "ID / Passport",
        "phone": "Phone",
        "email": "Email",
        "address": "Address",
        "driver_license": "Driving licence",
        "rental": "Rental details",
        "pickup": "Pickup",
        "return": "Return",
        "location": "Location",
        "days": "Days",
        "vehicles": "Vehicles",
        "registration": "Registration",
        "vehicle": "Vehicle",
        "price_per_day": "Price/day",
        "total": "Total",
        "delivery_inspection": "Delivery inspection",
        "return_inspection": "Return inspection",
        "odometer": "Odometer",
        "fuel": "Fuel",
        "condition": "Condition",
        "notes": "Notes",
        "photos": "Photos",
        "drivers": "Additional drivers",
        "extras": "Extras",
        "upgrades": "Upgrades",
        "description": "Item",
        "unit_price": "Unit price",
        "quantity": "Quantity",
        "subtotal": "Net amount",
        "tax": "VAT",
        "total_price": "Total (VAT included)",
        "comments": "Special comments",
        "inspection_link": "View the inspection photos at",
        "signature": "Renter signature",
        "signed_on": "Signed on",
        "at": "at",
        "ip": "IP",
        "pending_signature": "Pending signature",
    },
}


def get_labels(language: str) -> dict:
    """Labels for a language; anything not translated renders in English"""
    return LABELS.get(language, LABELS["en"])


def format_money(value) -> str:
    amount = value if isinstance(value, Decimal) else Decimal(str(value or 0))
    return f"{amount:.2f} €"


def format_percent(value) -> str:
    rate = value if isinstance(value, Decimal) else Decimal(str(value or 0))
    return f"{(rate * 100).normalize():f}%"


def _build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["money"] = format_money
    env.filters["percent"] = format_percent
    return env


env = _build_environment()


def render_contract(data: ContractData) -> str:
    template = env.get_template(CONTRACT_TEMPLATE)
    return template.render(
        c=data,
        t=get_labels(data.language),
        primary_color=data.primary_color or DEFAULT_PRIMARY_COLOR,
        secondary_color=data.secondary_color or DEFAULT_SECONDARY_COLOR,
    )
