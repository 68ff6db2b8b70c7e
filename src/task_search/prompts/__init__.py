"""Prompt templates."""

from task_search.prompts.templates import PromptTemplateManager, PromptType

__all__ = ["PromptTemplateManager", "PromptType"]
