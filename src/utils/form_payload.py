"""
Conversión de cuerpos x-www-form-urlencoded con notación de corchetes.

Bitrix24 envía los webhooks como ``document_id[0]=crm&document_id[2]=LEAD_1&auth[domain]=...``.
"""
import re
from typing import Any, Dict, Iterable, Tuple

_BRACKET_KEY = re.compile(r"^(?P<name>[^\[\]]+)\[(?P<key>[^\[\]]*)\]$")


def parse_bracketed_form(items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """
    Agrupa las claves con corchetes en listas (índices numéricos o vacíos) o dicts.

    Args:
        items: Pares (clave, valor) en el orden recibido

    Returns:
        Dict con los valores agrupados; las listas quedan ordenadas por índice
    """
    payload: Dict[str, Any] = {}
    indexed: Dict[str, Dict[int, Any]] = {}

    for raw_key, value in items:
        match = _BRACKET_KEY.match(raw_key)
        if not match:
            payload[raw_key] = value
            continue

        name, key = match.group("name"), match.group("key")
        if key == "":
            slots = indexed.setdefault(name, {})
            slots[len(slots)] = value
        elif key.isdigit():
            indexed.setdefault(name, {})[int(key)] = value
        else:
            nested = payload.setdefault(name, {})
            if isinstance(nested, dict):
                nested[key] = value

    for name, slots in indexed.items():
        payload[name] = [slots[index] for index in sorted(slots)]

    return payload
