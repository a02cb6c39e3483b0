"""Конфигурация приложения."""
