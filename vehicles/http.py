# vehicles/http.py
"""
Utilidades comunes de la API JSON.

Todas las respuestas usan el mismo sobre:
    {"success": true, "data": ...}  o  {"success": false, "error": "..."}
"""
import json
import logging
from functools import wraps

from django.core.exceptions import ObjectDoesNotExist
from django.db.models import ProtectedError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .storage import DuplicateVehicleError

logger = logging.getLogger(__name__)


def ok(data, status=200):
    return JsonResponse(
        {"success": True, "data": data},
        status=status,
        json_dumps_params={"ensure_ascii": False},
    )


def err(message, status=400):
    return JsonResponse(
        {"success": False, "error": message},
        status=status,
        json_dumps_params={"ensure_ascii": False},
    )


def json_body(request) -> dict:
    """
    Cuerpo JSON de la petición como dict.

    Raises:
        ValueError: cuerpo vacío, JSON inválido o no es un objeto.
    """
    try:
        data = json.loads(request.body.decode("utf-8") or "null")
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValueError("Payload inválido.")
    if not isinstance(data, dict):
        raise ValueError("Payload inválido.")
    return data


def api_view(view):
    """
    Traduce las excepciones de la capa de datos a respuestas JSON:

        ObjectDoesNotExist    -> 404
        ValueError            -> 400
        DuplicateVehicleError -> 409
        ProtectedError        -> 409
        cualquier otra        -> 500 (se registra con traceback)

    La API es JSON sin sesión de formulario, así que queda fuera de la
    comprobación CSRF.
    """
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ObjectDoesNotExist as e:
            return err(str(e) or "No encontrado", status=404)
        except ValueError as e:
            return err(str(e), status=400)
        except DuplicateVehicleError as e:
            return err(str(e), status=409)
        except ProtectedError:
            return err("El registro tiene operaciones asociadas y no se puede eliminar", status=409)
        except Exception:
            logger.exception("Error no controlado en %s %s", request.method, request.path)
            return err("Error interno del servidor", status=500)
    return csrf_exempt(wrapper)
