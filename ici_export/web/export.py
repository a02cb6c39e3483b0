"""Роуты выгрузки выпусков журнала в формат ICI."""

from flask import Blueprint, Response, abort, current_app, jsonify, redirect, request, url_for
from ici_export.modules.exporter import (
    IciExporter,
    JournalNotFoundError,
    SelectionError,
    attachment_filename,
    parse_bool,
)
from ici_export.modules.xml_builder import BuildOptions
from ici_export.utils.logger import get_logger

logger = get_logger(__name__)

# Blueprint выгрузки
export_bp = Blueprint("export", __name__)


def _exporter(validate_schema: bool) -> IciExporter:
    """Экспортер с параметрами из настроек и флагом валидации из запроса."""
    options = BuildOptions.from_settings()
    options.validate_schema = validate_schema
    return IciExporter(
        repository=current_app.extensions["ici_repository"],
        url_builder=current_app.extensions["ici_url_builder"],
        options=options,
    )


@export_bp.route("/journals/<journal_id>/issues")
def issue_list(journal_id: str):
    """Список опубликованных выпусков журнала."""
    repository = current_app.extensions["ici_repository"]
    journal = repository.get_journal(journal_id)
    if journal is None:
        abort(404)

    issues = [
        {
            "id": issue.id,
            "volume": issue.volume,
            "number": issue.number,
            "year": issue.year,
            "datePublished": issue.date_published.isoformat() if issue.date_published else None,
        }
        for issue in repository.get_published_issues(journal)
    ]
    return jsonify({"journal": journal.id, "issues": issues})


@export_bp.route("/journals/<journal_id>/export", methods=["GET", "POST"])
def export_issues(journal_id: str):
    """Выгрузка выбранных выпусков: XML отдаётся как вложение."""
    target = request.values.get("target", "issue")
    if target != "issue":
        abort(400)

    issue_ids = request.values.getlist("issueId")
    validate_schema = parse_bool(request.values.get("validateSchema"), default=True)

    try:
        result = _exporter(validate_schema).build(journal_id, issue_ids)
    except JournalNotFoundError:
        abort(404)
    except SelectionError:
        # Нечего выгружать - возвращаем к выбору выпусков
        return redirect(url_for("export.issue_list", journal_id=journal_id))

    if result.validation is not None and not result.validation.ok:
        logger.warning(
            f"Журнал {journal_id}: документ не прошёл XSD валидацию ({len(result.validation.errors)} ошибок), "
            "выгрузка продолжена"
        )

    return Response(
        result.content,
        content_type="application/xml; charset=UTF-8",
        headers={
            "Cache-Control": "private",
            "Content-Disposition": f'attachment; filename="{attachment_filename(result.journal)}"',
        },
    )
