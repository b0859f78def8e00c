# =============================================================================
# HELPDESK API - DATABASE SCHEMA
# =============================================================================
# Idempotent DDL shared by PostgreSQL and SQLite.
# {pk} is replaced with the backend specific auto-increment primary key.
# Timestamps are ISO-8601 UTC strings, tags are a JSON array.
# =============================================================================

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id {pk},
        email VARCHAR(255) NOT NULL UNIQUE,
        password_hash VARCHAR(255) NOT NULL,
        name VARCHAR(255) NOT NULL,
        phone VARCHAR(50),
        address TEXT,
        avatar TEXT,
        has_notifications BOOLEAN NOT NULL DEFAULT FALSE,
        is_email_verified BOOLEAN NOT NULL DEFAULT FALSE,
        role VARCHAR(20) NOT NULL DEFAULT 'customer',
        created_at VARCHAR(40) NOT NULL,
        updated_at VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tickets (
        id {pk},
        ticket_number VARCHAR(40) NOT NULL UNIQUE,
        title VARCHAR(200) NOT NULL,
        description TEXT NOT NULL,
        status VARCHAR(20) NOT NULL DEFAULT 'open',
        priority VARCHAR(20) NOT NULL DEFAULT 'medium',
        category VARCHAR(30) NOT NULL DEFAULT 'general',
        customer_id INTEGER NOT NULL REFERENCES users(id),
        assigned_to INTEGER REFERENCES users(id),
        tags TEXT NOT NULL DEFAULT '[]',
        ai_sentiment VARCHAR(20),
        ai_suggested_priority VARCHAR(20),
        ai_suggested_category VARCHAR(30),
        ai_summary TEXT,
        resolved_at VARCHAR(40),
        closed_at VARCHAR(40),
        first_response_at VARCHAR(40),
        created_at VARCHAR(40) NOT NULL,
        updated_at VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ticket_messages (
        id {pk},
        ticket_id INTEGER NOT NULL REFERENCES tickets(id) ON DELETE CASCADE,
        sender_id INTEGER REFERENCES users(id),
        sender_role VARCHAR(20) NOT NULL,
        content TEXT NOT NULL,
        is_internal BOOLEAN NOT NULL DEFAULT FALSE,
        read_at VARCHAR(40),
        created_at VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ticket_attachments (
        id {pk},
        ticket_id INTEGER REFERENCES tickets(id) ON DELETE CASCADE,
        message_id INTEGER REFERENCES ticket_messages(id) ON DELETE CASCADE,
        filename VARCHAR(255) NOT NULL,
        stored_name VARCHAR(255) NOT NULL,
        url TEXT NOT NULL,
        mime_type VARCHAR(120),
        size INTEGER NOT NULL DEFAULT 0,
        uploaded_at VARCHAR(40) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS data_entries (
        id {pk},
        title VARCHAR(255) NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        value DOUBLE PRECISION NOT NULL,
        image VARCHAR(255),
        created_by INTEGER NOT NULL REFERENCES users(id),
        created_at VARCHAR(40) NOT NULL,
        updated_at VARCHAR(40) NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tickets_customer ON tickets(customer_id)",
    "CREATE INDEX IF NOT EXISTS idx_tickets_assigned ON tickets(assigned_to)",
    "CREATE INDEX IF NOT EXISTS idx_tickets_status ON tickets(status)",
    "CREATE INDEX IF NOT EXISTS idx_tickets_created ON tickets(created_at)",
    "CREATE INDEX IF NOT EXISTS idx_messages_ticket ON ticket_messages(ticket_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_attachments_ticket ON ticket_attachments(ticket_id)",
    "CREATE INDEX IF NOT EXISTS idx_attachments_message ON ticket_attachments(message_id)",
    "CREATE INDEX IF NOT EXISTS idx_data_entries_owner ON data_entries(created_by)",
]

PRIMARY_KEYS = {
    "postgresql": "SERIAL PRIMARY KEY",
    "sqlite": "INTEGER PRIMARY KEY AUTOINCREMENT",
}


def render_schema(db_type: str) -> list:
    """Return the DDL statements for the given backend."""
    pk = PRIMARY_KEYS[db_type]
    return [statement.replace("{pk}", pk).strip() for statement in SCHEMA_STATEMENTS]
