"""
Движок ротации пар для групповых прогулок.

Модули:
- partitioner: разбиение участников на пары/тройки
- rotation_policy: пора ли ротация
- join: присоединение к идущей прогулке
- orchestrator: периодическая ротация всех активных прогулок
- notifier: уведомления о новых парах
- mirror: живое отражение пары пользователя
"""
