import os
import re
import secrets
from urllib.parse import urlparse, urljoin
from flask import request

PHONE_PATTERN = re.compile(r'^(\+\d{1,3}[\s-]?)?\d{10,14}$')
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def generate_secure_token(length: int = 32) -> str:
    """
    Generar token aleatorio seguro

    Args:
        length: Tamaño del token en bytes

    Returns:
        Token hexadecimal
    """
    return secrets.token_hex(length)


def is_valid_phone(phone: str) -> bool:
    """Telefono de WhatsApp: 10-14 digitos, codigo de pais opcional"""
    return bool(phone) and PHONE_PATTERN.match(phone.strip()) is not None


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def image_extension(filename: str) -> str:
    """
    Extension normalizada de un archivo subido

    Args:
        filename: Nombre original del archivo

    Returns:
        Extension en minusculas sin el punto ('' si no tiene)
    """
    _, ext = os.path.splitext(filename or '')
    return re.sub(r'[^a-z0-9]', '', ext.lower())


def is_safe_url(target: str) -> bool:
    """
    Verificar si la URL es segura para redirigir

    Args:
        target: URL destino

    Returns:
        True si apunta al mismo host
    """
    if not target:
        return False

    ref_url = urlparse(request.host_url)
    test_url = urlparse(urljoin(request.host_url, target))

    return (test_url.scheme in ('http', 'https') and
            ref_url.netloc == test_url.netloc)
