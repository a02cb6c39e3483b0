"""Точка входа ICI Export: веб-сервер и выгрузка из командной строки."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from ici_export.config.settings import get_settings
from ici_export.modules.exporter import IciExporter, JournalNotFoundError, SelectionError
from ici_export.modules.repository import MetadataFormatError, load_metadata_file
from ici_export.modules.urls import BaseUrlBuilder
from ici_export.modules.xml_builder import BuildOptions
from ici_export.utils.logger import setup_logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ici-export",
        description="Выгрузка метаданных журнала в формат импорта Index Copernicus (ICI)",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("serve", help="Запустить веб-сервер")

    export = subparsers.add_parser("export", help="Выгрузить выпуски в XML файл")
    export.add_argument("--data", required=True, type=Path, help="JSON выгрузка метаданных")
    export.add_argument("--journal", required=True, help="Идентификатор журнала")
    export.add_argument("--issue", action="append", default=[], help="Идентификатор выпуска (можно несколько)")
    export.add_argument("--output", required=True, type=Path, help="Путь к XML файлу")
    export.add_argument("--no-validate", action="store_true", help="Не проверять документ по XSD")
    export.add_argument("--schema", type=Path, help="Путь к XSD схеме")
    export.add_argument("--force-affiliation-fallback", action="store_true",
                        help="Подставлять текст для пустой аффилиации")
    export.add_argument("--affiliation-fallback-text", help="Текст для пустой аффилиации")
    export.add_argument("--base-url", help="Базовый URL сайта журнала")
    return parser


def export_command(args: argparse.Namespace) -> int:
    """Выгрузка выпусков в файл. Возвращает код завершения."""
    settings = get_settings()
    logger = setup_logger(log_file=settings.log_file, log_level=settings.log_level)

    options = BuildOptions.from_settings()
    if args.no_validate:
        options.validate_schema = False
    if args.schema:
        options.schema_path = args.schema
    if args.force_affiliation_fallback:
        options.force_affiliation_fallback = True
    if args.affiliation_fallback_text:
        options.affiliation_fallback_text = args.affiliation_fallback_text

    try:
        repository = load_metadata_file(args.data)
    except (FileNotFoundError, MetadataFormatError) as e:
        logger.error(str(e))
        return 2

    exporter = IciExporter(repository, BaseUrlBuilder(args.base_url or settings.base_url), options)
    try:
        result = exporter.export_to_file(args.journal, args.issue, args.output)
    except JournalNotFoundError as e:
        logger.error(str(e))
        return 2
    except SelectionError as e:
        logger.error(f"{e}: укажите --issue")
        return 2

    if result.validation is not None and not result.validation.ok:
        logger.warning(f"Документ не прошёл XSD валидацию: ошибок {len(result.validation.errors)}")
    return 0


def serve_command() -> int:
    """Запуск веб-сервера (для локальной разработки)."""
    from ici_export.web.app import create_app

    settings = get_settings()
    logger = setup_logger(log_file=settings.log_file, log_level=settings.log_level)

    logger.info("=" * 50)
    logger.info("ICI Export")
    logger.info(f"Версия: {__import__('ici_export').__version__}")
    logger.info("=" * 50)
    logger.info(f"Директория схем: {settings.schemas_dir}")
    logger.info(f"Директория логов: {settings.logs_dir}")

    app = create_app()
    debug = settings.log_level == "DEBUG"
    logger.info(f"Сервер запускается на http://{settings.host}:{settings.port}")
    logger.info("Для остановки нажмите Ctrl+C")
    try:
        app.run(host=settings.host, port=settings.port, debug=debug)
    except KeyboardInterrupt:
        logger.info("Остановка сервера...")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Точка входа в приложение."""
    args = _build_parser().parse_args(argv)
    if args.command == "export":
        return export_command(args)
    return serve_command()


if __name__ == "__main__":
    sys.exit(main())
