# vehicles/notes.py
"""
Notas del equipo comercial sobre vehículos, clientes, deals y depósitos.

Todos los modelos de nota heredan de `NoteBase` y cuelgan de su propietario
con related_name="notas", así que estas funciones trabajan con el
propietario y no con el modelo concreto.
"""
import logging
from typing import Dict, Mapping

from .http import json_body, ok
from .models import NoteBase
from .storage import check_field_constraints

logger = logging.getLogger(__name__)

NOTE_TEXT_FIELDS = ("titulo", "contenido", "usuario")


def note_to_dict(note) -> Dict:
    return {
        "id": note.pk,
        "tipo": note.tipo,
        "titulo": note.titulo,
        "contenido": note.contenido,
        "usuario": note.usuario,
        "created_at": note.created_at.isoformat(),
        "updated_at": note.updated_at.isoformat(),
    }


def clean_note_data(model, data: Mapping, partial=False) -> Dict:
    cleaned = {}
    for field, value in data.items():
        if field in NOTE_TEXT_FIELDS:
            cleaned[field] = "" if value is None else str(value).strip()
        elif field == "tipo":
            if value not in NoteBase.Tipo.values:
                raise ValueError(f"tipo inválido: {value!r} (válidos: {', '.join(NoteBase.Tipo.values)})")
            cleaned["tipo"] = value
        else:
            raise ValueError(f"Campo desconocido: {field}")

    if (not partial or "contenido" in cleaned) and not cleaned.get("contenido"):
        raise ValueError("contenido es obligatorio")
    # sin usuario se queda el que había (o "Admin" al crear)
    if "usuario" in cleaned and not cleaned["usuario"]:
        del cleaned["usuario"]
    check_field_constraints(model, cleaned)
    return cleaned


def add_note(owner, data: Mapping):
    cleaned = clean_note_data(owner.notas.model, data)
    note = owner.notas.create(**cleaned)
    logger.info("Nota %s añadida a %s %s", note.pk, owner._meta.model_name, owner.pk)
    return note


def update_note(owner, note_id, data: Mapping):
    note = owner.notas.get(pk=note_id)
    cleaned = clean_note_data(owner.notas.model, data, partial=True)
    for field, value in cleaned.items():
        setattr(note, field, value)
    note.save()
    return note


def delete_note(owner, note_id) -> None:
    owner.notas.get(pk=note_id).delete()
    logger.info("Nota %s de %s %s eliminada", note_id, owner._meta.model_name, owner.pk)


# -----------------------------
# Respuestas para las vistas
# -----------------------------
def notes_response(request, owner):
    """GET: notas del propietario, la más reciente primero. POST: alta."""
    if request.method == "POST":
        return ok(note_to_dict(add_note(owner, json_body(request))), status=201)
    return ok([note_to_dict(n) for n in owner.notas.all()])


def note_detail_response(request, owner, note_id):
    """PUT: edición parcial. DELETE: baja."""
    if request.method == "PUT":
        return ok(note_to_dict(update_note(owner, note_id, json_body(request))))
    delete_note(owner, note_id)
    return ok({"id": note_id, "message": "Nota eliminada"})
