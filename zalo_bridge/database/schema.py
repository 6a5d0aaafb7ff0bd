"""Database Schema Definitions."""

SCHEMA_SQL = """
-- 1. Conversations (written by sync; the pipeline only moves the last-message pointer)
CREATE TABLE IF NOT EXISTS zalo_conversations (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL CHECK(type IN ('direct', 'group')),
    participant_id TEXT,
    group_id TEXT,
    last_message_id TEXT,
    last_message_time TEXT,
    created_at TEXT,
    updated_at TEXT
);

-- 2. Messages (id = Zalo msgId or local id, client_id = caller correlation id)
CREATE TABLE IF NOT EXISTS zalo_messages (
    id TEXT PRIMARY KEY,
    client_id TEXT,
    conversation_id TEXT NOT NULL,
    sender_id TEXT,
    content TEXT NOT NULL DEFAULT '',
    raw_data TEXT,
    sent_at TEXT,
    received_at TEXT,
    is_edited INTEGER NOT NULL DEFAULT 0,
    is_undone INTEGER NOT NULL DEFAULT 0,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_zalo_messages_client_id ON zalo_messages(client_id);
CREATE INDEX IF NOT EXISTS idx_zalo_messages_conversation ON zalo_messages(conversation_id, sent_at);

-- 3. Users (senders and direct-chat counterparts)
CREATE TABLE IF NOT EXISTS zalo_users (
    id TEXT PRIMARY KEY,
    display_name TEXT,
    zalo_name TEXT,
    avatar_url TEXT,
    updated_at TEXT
);

-- 4. Groups (display name/avatar for group conversations)
CREATE TABLE IF NOT EXISTS zalo_groups (
    id TEXT PRIMARY KEY,
    name TEXT,
    avatar_url TEXT,
    updated_at TEXT
);
"""
