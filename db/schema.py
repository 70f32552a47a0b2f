# SQL schema for HanziFive database

SCHEMA_VERSION = 3

SCHEMA_SQL = """
-- Flashcards
CREATE TABLE IF NOT EXISTS flashcards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    character TEXT NOT NULL,
    pinyin TEXT NOT NULL,
    meaning TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Tags
CREATE TABLE IF NOT EXISTS tags (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS flashcard_tags (
    flashcard_id INTEGER NOT NULL,
    tag_id INTEGER NOT NULL,
    PRIMARY KEY (flashcard_id, tag_id),
    FOREIGN KEY (flashcard_id) REFERENCES flashcards (id) ON DELETE CASCADE,
    FOREIGN KEY (tag_id) REFERENCES tags (id) ON DELETE CASCADE
);

-- Decks
CREATE TABLE IF NOT EXISTS decks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    description TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Deck membership
CREATE TABLE IF NOT EXISTS deck_flashcards (
    deck_id INTEGER NOT NULL,
    flashcard_id INTEGER NOT NULL,
    PRIMARY KEY (deck_id, flashcard_id),
    FOREIGN KEY (deck_id) REFERENCES decks (id) ON DELETE CASCADE,
    FOREIGN KEY (flashcard_id) REFERENCES flashcards (id) ON DELETE CASCADE
);

-- Completed study runs (append-only)
CREATE TABLE IF NOT EXISTS study_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    deck_id INTEGER NOT NULL,
    started_at TEXT NOT NULL DEFAULT (datetime('now')),
    ended_at TEXT,
    correct INTEGER NOT NULL DEFAULT 0 CHECK(correct >= 0),
    incorrect INTEGER NOT NULL DEFAULT 0 CHECK(incorrect >= 0),
    study_mode TEXT NOT NULL DEFAULT 'normal' CHECK(study_mode IN ('normal', 'reverse', 'meaningOnly')),
    FOREIGN KEY (deck_id) REFERENCES decks (id) ON DELETE CASCADE
);
"""

# Streak ledger, only reached through utils.streaks.StreakLedger
STREAK_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS revise_card_streaks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    flashcard_id INTEGER UNIQUE NOT NULL,
    streak INTEGER NOT NULL DEFAULT 0 CHECK(streak >= 0),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_flashcards_created ON flashcards (created_at);
CREATE INDEX IF NOT EXISTS idx_flashcards_lookup ON flashcards (character, pinyin, meaning);
CREATE INDEX IF NOT EXISTS idx_tags_name ON tags (name);
CREATE INDEX IF NOT EXISTS idx_flashcard_tags_card ON flashcard_tags (flashcard_id);
CREATE INDEX IF NOT EXISTS idx_flashcard_tags_tag ON flashcard_tags (tag_id);
CREATE INDEX IF NOT EXISTS idx_decks_created ON decks (created_at);
CREATE INDEX IF NOT EXISTS idx_deck_flashcards_deck ON deck_flashcards (deck_id);
CREATE INDEX IF NOT EXISTS idx_deck_flashcards_card ON deck_flashcards (flashcard_id);
CREATE INDEX IF NOT EXISTS idx_study_sessions_deck ON study_sessions (deck_id);
CREATE INDEX IF NOT EXISTS idx_study_sessions_started ON study_sessions (started_at);
"""
