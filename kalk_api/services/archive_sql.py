# Archive SQL Generator
"""
Builds the SQL migration that archives a set of tables under a year/prefix.

Pure string composition: nothing here talks to the database, and the result
is handed to an operator to run as a migration. For each table ``T`` (in the
order given) the migration:

1. creates ``<year>_[<prefix>_]T`` with ``T``'s structure (defaults,
   constraints, indexes, identity; foreign keys come later),
2. copies every row of ``T`` into it,
3. enables row level security on it,
4. recreates each of ``T``'s RLS policies on it (a ``DO`` block walking
   ``pg_policy``),
5. revokes INSERT/UPDATE/DELETE on ``T`` from the read-only roles.

Then one ``DO`` block recreates foreign keys owned by the archived tables,
pointing at archived targets where the target is archived too, and a final
``UPDATE`` switches ``app_config`` to the new year/prefix.

Re-running a migration: ``CREATE TABLE IF NOT EXISTS`` tolerates existing
tables and duplicate foreign keys are skipped with a notice, but
``INSERT INTO ... SELECT *`` is NOT idempotent. Running the same migration
twice duplicates every archived row.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from ..config import settings
from ..models import GeneratedMigration

POLICY_COMMANDS = {
    "r": "SELECT",
    "a": "INSERT",
    "w": "UPDATE",
    "d": "DELETE",
    "*": "ALL",
}


def quote_ident(name: str) -> str:
    """Double-quoted SQL identifier."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Single-quoted SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def archive_table_prefix(year: str, prefix: str = "") -> str:
    return f"{year}_{prefix}_" if prefix else f"{year}_"


def archive_table_name(table: str, year: str, prefix: str = "") -> str:
    """``<year>_[<prefix>_]<table>``"""
    return f"{archive_table_prefix(year, prefix)}{table}"


def migration_name(year: str, prefix: str, now: datetime) -> str:
    timestamp = int(now.timestamp() * 1000)
    return f"archive_tables_{year}_{prefix or 'noprefix'}_{timestamp}"


def create_table_sql(table: str, new_table: str) -> str:
    return f"""
-- Create new table for {table}
CREATE TABLE IF NOT EXISTS {quote_ident(new_table)} (LIKE {quote_ident(table)} INCLUDING DEFAULTS INCLUDING CONSTRAINTS INCLUDING INDEXES INCLUDING IDENTITY);
"""


def copy_rows_sql(table: str, new_table: str) -> str:
    return f"""
-- Copy all existing data to new table
INSERT INTO {quote_ident(new_table)}
SELECT * FROM {quote_ident(table)};
"""


def enable_rls_sql(new_table: str) -> str:
    return f"""
-- Enable RLS on new table
ALTER TABLE {quote_ident(new_table)} ENABLE ROW LEVEL SECURITY;
"""


def copy_policies_sql(table: str, new_table: str) -> str:
    """
    DO block recreating every RLS policy of ``table`` on ``new_table``.

    Keeps name, permissiveness and roles (PUBLIC when none). SELECT/DELETE
    policies get USING, INSERT gets WITH CHECK, UPDATE/ALL get both; a
    missing expression becomes ``true``.
    """
    command_cases = "\n".join(
        f"      WHEN '{code}' THEN '{command}'" for code, command in POLICY_COMMANDS.items()
    )
    source = quote_literal(quote_ident(table))
    target = quote_literal(new_table)

    return f"""
-- Copy RLS policies from old table to new table
DO $policy_copy$
DECLARE
  policy_record RECORD;
  new_policy_name TEXT;
  cmd_type TEXT;
  role_names TEXT;
  sql_stmt TEXT;
BEGIN
  FOR policy_record IN
    SELECT
      polname,
      polcmd,
      polpermissive,
      polroles,
      pg_get_expr(polqual, polrelid) AS qual,
      pg_get_expr(polwithcheck, polrelid) AS with_check
    FROM pg_policy
    WHERE polrelid = {source}::regclass
  LOOP
    new_policy_name := policy_record.polname;

    cmd_type := CASE policy_record.polcmd
{command_cases}
      ELSE 'ALL'
    END;

    role_names := array_to_string(
      ARRAY(
        SELECT rolname FROM pg_roles WHERE oid = ANY(policy_record.polroles)
      ),
      ', '
    );
    IF role_names = '' THEN
      role_names := 'PUBLIC';
    END IF;

    IF cmd_type = 'SELECT' OR cmd_type = 'DELETE' THEN
      sql_stmt := format(
        'CREATE POLICY %I ON %I AS %s FOR %s TO %s USING (%s)',
        new_policy_name,
        {target},
        CASE WHEN policy_record.polpermissive THEN 'PERMISSIVE' ELSE 'RESTRICTIVE' END,
        cmd_type,
        role_names,
        COALESCE(policy_record.qual, 'true')
      );
    ELSIF cmd_type = 'INSERT' THEN
      sql_stmt := format(
        'CREATE POLICY %I ON %I AS %s FOR %s TO %s WITH CHECK (%s)',
        new_policy_name,
        {target},
        CASE WHEN policy_record.polpermissive THEN 'PERMISSIVE' ELSE 'RESTRICTIVE' END,
        cmd_type,
        role_names,
        COALESCE(policy_record.with_check, 'true')
      );
    ELSE
      sql_stmt := format(
        'CREATE POLICY %I ON %I AS %s FOR %s TO %s USING (%s) WITH CHECK (%s)',
        new_policy_name,
        {target},
        CASE WHEN policy_record.polpermissive THEN 'PERMISSIVE' ELSE 'RESTRICTIVE' END,
        cmd_type,
        role_names,
        COALESCE(policy_record.qual, 'true'),
        COALESCE(policy_record.with_check, 'true')
      );
    END IF;

    EXECUTE sql_stmt;
  END LOOP;
END $policy_copy$;
"""


def revoke_writes_sql(table: str, roles: Sequence[str]) -> str:
    revokes = "\n".join(
        f"REVOKE INSERT, UPDATE, DELETE ON {quote_ident(table)} FROM {quote_ident(role)};"
        for role in roles
    )
    return f"""
-- Make old table read-only
{revokes}
"""


def recreate_foreign_keys_sql(tables: Sequence[str], year: str, prefix: str) -> str:
    """
    DO block re-adding foreign keys owned by ``tables`` on their archives.

    A referenced table that is archived too is replaced by its archive;
    other targets stay as they are. ON UPDATE / ON DELETE rules carry over.
    An already existing constraint raises a notice instead of failing.
    """
    table_list = ", ".join(quote_literal(t) for t in tables)
    name_prefix = quote_literal(archive_table_prefix(year, prefix))

    return f"""
-- Recreate foreign key constraints for archived tables
-- These reference the new archived tables instead of the original ones
DO $fk_recreation$
DECLARE
  fk_record RECORD;
  source_table TEXT;
  target_table TEXT;
  constraint_name TEXT;
  fk_sql TEXT;
BEGIN
  FOR fk_record IN
    SELECT
      tc.table_name,
      tc.constraint_name,
      kcu.column_name,
      ccu.table_name AS foreign_table_name,
      ccu.column_name AS foreign_column_name,
      rc.update_rule,
      rc.delete_rule
    FROM information_schema.table_constraints AS tc
    JOIN information_schema.key_column_usage AS kcu
      ON tc.constraint_name = kcu.constraint_name
      AND tc.table_schema = kcu.table_schema
    JOIN information_schema.constraint_column_usage AS ccu
      ON ccu.constraint_name = tc.constraint_name
      AND ccu.table_schema = tc.table_schema
    JOIN information_schema.referential_constraints AS rc
      ON rc.constraint_name = tc.constraint_name
      AND rc.constraint_schema = tc.table_schema
    WHERE tc.constraint_type = 'FOREIGN KEY'
      AND tc.table_schema = 'public'
      AND tc.table_name IN ({table_list})
  LOOP
    source_table := {name_prefix} || fk_record.table_name;

    IF fk_record.foreign_table_name = ANY(ARRAY[{table_list}]) THEN
      target_table := {name_prefix} || fk_record.foreign_table_name;
    ELSE
      target_table := fk_record.foreign_table_name;
    END IF;

    constraint_name := fk_record.constraint_name;

    fk_sql := format(
      'ALTER TABLE %I ADD CONSTRAINT %I FOREIGN KEY (%I) REFERENCES %I(%I) ON UPDATE %s ON DELETE %s',
      source_table,
      constraint_name,
      fk_record.column_name,
      target_table,
      fk_record.foreign_column_name,
      fk_record.update_rule,
      fk_record.delete_rule
    );

    BEGIN
      EXECUTE fk_sql;
      RAISE NOTICE 'Created FK: %.% -> %.%', source_table, fk_record.column_name, target_table, fk_record.foreign_column_name;
    EXCEPTION WHEN duplicate_object THEN
      RAISE NOTICE 'FK already exists: %', constraint_name;
    END;
  END LOOP;
END $fk_recreation$;
"""


def update_app_config_sql(year: str, prefix: str, updated_by: str) -> str:
    return f"""
-- Update app configuration
UPDATE {settings.app_config_table}
SET
  active_year = {quote_literal(year)},
  active_prefix = {quote_literal(prefix)},
  updated_at = now(),
  updated_by = {quote_literal(updated_by)}
WHERE id = 1;
"""


def build_archive_migration(
    year: str,
    prefix: str,
    tables: Sequence[str],
    updated_by: str,
    now: Optional[datetime] = None,
    readonly_roles: Optional[Sequence[str]] = None,
) -> GeneratedMigration:
    """
    Compose the archive migration for ``tables``.

    Args:
        year: Archive year (already trimmed, non-empty)
        prefix: Table name prefix, "" for none
        tables: Base table names, in the order to archive them
        updated_by: Email recorded on the app_config row
        now: Clock for the migration name (defaults to current UTC time)
        readonly_roles: Roles losing write access on the originals

    Returns:
        GeneratedMigration with one statement block per step
    """
    now = now or datetime.now(timezone.utc)
    roles = list(readonly_roles if readonly_roles is not None else settings.archive_readonly_roles)

    statements: List[str] = []
    for table in tables:
        new_table = archive_table_name(table, year, prefix)
        statements.append(create_table_sql(table, new_table))
        statements.append(copy_rows_sql(table, new_table))
        statements.append(enable_rls_sql(new_table))
        statements.append(copy_policies_sql(table, new_table))
        statements.append(revoke_writes_sql(table, roles))

    statements.append(recreate_foreign_keys_sql(tables, year, prefix))
    statements.append(update_app_config_sql(year, prefix, updated_by))

    return GeneratedMigration(
        migration_name=migration_name(year, prefix, now),
        year=year,
        prefix=prefix,
        tables=list(tables),
        statements=statements,
    )
