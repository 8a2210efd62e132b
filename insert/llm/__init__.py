"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build ranking prompts from candidate places and the visitor's preferences.
- Parse the model's ordering into candidate indices.
- Graceful fallback when the LLM is unavailable or returns invalid output.
"""
