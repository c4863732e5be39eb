"""
Service Organization
====================
Services are organized by their lifecycle and instantiation pattern:

**application/**
  Singleton services managed by ServiceContainer. One instance per application.
  Examples: PlantService, ReminderService, UserAuthManager

**ai/**
  LLM backends and the plant-care advisor built on them.

The container (``container.py``) wires both layers to the repositories in
``infrastructure/database/repositories``.
"""
