"""ICI Export - выгрузка метаданных журнала в формат импорта Index Copernicus."""

__version__ = "0.1.0"
