"""Prompt text sent to assistants."""

from __future__ import annotations


def build_diff_analysis_prompt(
    diff: str, ref: str | None = None, custom_prompt: str | None = None
) -> str:
    """Build the analysis prompt for a git diff."""
    target = ref or "staged changes"
    prompt = f"""Please analyze the following git diff ({target}):

{diff}

Provide:
1. A summary of the changes
2. Potential risks or issues
3. Whether the changes align with best practices
4. Any suggestions for improvement"""

    if custom_prompt:
        prompt += f"\n\nAdditional instructions:\n{custom_prompt}"
    return prompt


__all__ = ["build_diff_analysis_prompt"]
