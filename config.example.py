# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep the anon key and access tokens in .env (gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "AI_DIARY_APP_NAME": "App display name (default: ai-diary).",
    "AI_DIARY_LOG_LEVEL": "Console logging level (default: INFO).",
    "AI_DIARY_DATA_DIR": "Local data directory for logs (default: .local/ai_diary).",
    # Remote task store (Supabase / PostgREST)
    "AI_DIARY_SUPABASE_URL": "Project URL, e.g. https://<ref>.supabase.co (fallback: EXPO_PUBLIC_SUPABASE_URL).",
    "AI_DIARY_SUPABASE_ANON_KEY": "Anon API key (fallback: EXPO_PUBLIC_SUPABASE_ANON_KEY).",
    "AI_DIARY_ACCESS_TOKEN": "Signed-in user's JWT; the anon key is used as bearer when unset.",
    "AI_DIARY_TASKS_TABLE": "Table holding task rows (default: tasks).",
    "AI_DIARY_REMOTE_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "AI_DIARY_REMOTE_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 15).",
    # Session
    "AI_DIARY_USER_ID": "Owner id passed to every task operation (default: local-user).",
    "AI_DIARY_OFFLINE": "Force the in-memory task service (true/false). Implied when URL/key are missing.",
}
