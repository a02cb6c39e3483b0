"""Веб-интерфейс выгрузки."""
