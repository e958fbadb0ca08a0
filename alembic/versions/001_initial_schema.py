"""Initial schema: tenants, customers, products, quotations, invoices, reminders

Revision ID: 001
Revises: None
Create Date: 2026-10-18

Enums: tenantstatus, taxcategory, invoicestatus, paymentstatus, invoicesource,
quotationstatus, collectionremindertype, reminderchannel, reminderstatus
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

TENANT_SCOPED_TABLES = (
    "customers",
    "products",
    "invoices",
    "quotations",
    "collection_reminders",
)


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    # ── 1. Enum types ─────────────────────────────────────────────────────
    op.execute("CREATE TYPE tenantstatus AS ENUM ('ACTIVE', 'SUSPENDED');")
    op.execute(
        "CREATE TYPE taxcategory AS ENUM ('GRAVADO_19', 'GRAVADO_5', 'EXENTO', 'EXCLUIDO');"
    )
    op.execute("""
        CREATE TYPE invoicestatus AS ENUM (
            'DRAFT', 'PENDING', 'SENT', 'OVERDUE', 'PAID', 'CANCELLED'
        );
    """)
    op.execute("CREATE TYPE paymentstatus AS ENUM ('UNPAID', 'PARTIALLY_PAID', 'PAID');")
    op.execute("CREATE TYPE invoicesource AS ENUM ('MANUAL', 'QUOTATION');")
    op.execute("""
        CREATE TYPE quotationstatus AS ENUM (
            'DRAFT', 'SENT', 'ACCEPTED', 'REJECTED', 'EXPIRED', 'CONVERTED'
        );
    """)
    op.execute("""
        CREATE TYPE collectionremindertype AS ENUM (
            'BEFORE_DUE', 'ON_DUE', 'AFTER_DUE', 'MANUAL'
        );
    """)
    op.execute("CREATE TYPE reminderchannel AS ENUM ('EMAIL', 'SMS', 'WHATSAPP');")
    op.execute(
        "CREATE TYPE reminderstatus AS ENUM ('PENDING', 'SENT', 'FAILED', 'CANCELLED');"
    )

    # ── 2. Tenants and reference data ─────────────────────────────────────
    op.execute("""
        CREATE TABLE tenants (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            nit VARCHAR(20),
            status tenantstatus NOT NULL DEFAULT 'ACTIVE',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_tenants_status ON tenants (status);")

    op.execute("""
        CREATE TABLE customers (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            tenant_id UUID NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255),
            phone VARCHAR(50),
            document_number VARCHAR(30),
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_customers_tenant_id ON customers (tenant_id);")

    op.execute("""
        CREATE TABLE products (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            tenant_id UUID NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
            sku VARCHAR(50) NOT NULL,
            name VARCHAR(255) NOT NULL,
            sale_price NUMERIC(14, 2) NOT NULL DEFAULT 0,
            tax_category taxcategory NOT NULL DEFAULT 'GRAVADO_19',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_products_tenant_sku UNIQUE (tenant_id, sku)
        );
    """)
    op.execute("CREATE INDEX ix_products_tenant_id ON products (tenant_id);")

    # ── 3. Invoices ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE invoices (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            tenant_id UUID NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
            invoice_number VARCHAR(20) NOT NULL,
            customer_id UUID REFERENCES customers(id) ON DELETE SET NULL,
            user_id UUID,
            status invoicestatus NOT NULL DEFAULT 'DRAFT',
            payment_status paymentstatus NOT NULL DEFAULT 'UNPAID',
            source invoicesource NOT NULL DEFAULT 'MANUAL',
            subtotal NUMERIC(14, 2) NOT NULL,
            tax NUMERIC(14, 2) NOT NULL DEFAULT 0,
            discount NUMERIC(14, 2) NOT NULL DEFAULT 0,
            total NUMERIC(14, 2) NOT NULL,
            issue_date TIMESTAMPTZ NOT NULL,
            due_date TIMESTAMPTZ,
            paid_at TIMESTAMPTZ,
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_invoices_tenant_number UNIQUE (tenant_id, invoice_number)
        );
    """)
    op.execute("CREATE INDEX ix_invoices_tenant_id ON invoices (tenant_id);")
    op.execute("CREATE INDEX ix_invoices_status ON invoices (status);")
    op.execute("""
        CREATE INDEX ix_invoices_collectible ON invoices (tenant_id, due_date)
            WHERE due_date IS NOT NULL AND payment_status <> 'PAID';
    """)

    op.execute("""
        CREATE TABLE invoice_items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            invoice_id UUID NOT NULL REFERENCES invoices(id) ON DELETE CASCADE,
            product_id UUID REFERENCES products(id) ON DELETE SET NULL,
            quantity INTEGER NOT NULL CHECK (quantity > 0),
            unit_price NUMERIC(14, 2) NOT NULL,
            tax_rate NUMERIC(5, 2) NOT NULL DEFAULT 19,
            tax_category taxcategory NOT NULL DEFAULT 'GRAVADO_19',
            discount NUMERIC(14, 2) NOT NULL DEFAULT 0,
            subtotal NUMERIC(14, 2) NOT NULL,
            tax NUMERIC(14, 2) NOT NULL,
            total NUMERIC(14, 2) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_invoice_items_invoice_id ON invoice_items (invoice_id);")

    # ── 4. Quotations ─────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE quotations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            tenant_id UUID NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
            quotation_number VARCHAR(20) NOT NULL,
            customer_id UUID REFERENCES customers(id) ON DELETE SET NULL,
            user_id UUID,
            status quotationstatus NOT NULL DEFAULT 'DRAFT',
            subtotal NUMERIC(14, 2) NOT NULL,
            tax NUMERIC(14, 2) NOT NULL DEFAULT 0,
            discount NUMERIC(14, 2) NOT NULL DEFAULT 0,
            total NUMERIC(14, 2) NOT NULL,
            issue_date TIMESTAMPTZ NOT NULL,
            valid_until TIMESTAMPTZ,
            notes TEXT,
            converted_to_invoice_id UUID UNIQUE REFERENCES invoices(id) ON DELETE SET NULL,
            converted_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_quotations_tenant_number UNIQUE (tenant_id, quotation_number)
        );
    """)
    op.execute("CREATE INDEX ix_quotations_tenant_id ON quotations (tenant_id);")
    op.execute("CREATE INDEX ix_quotations_status ON quotations (status);")

    op.execute("""
        CREATE TABLE quotation_items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            quotation_id UUID NOT NULL REFERENCES quotations(id) ON DELETE CASCADE,
            product_id UUID REFERENCES products(id) ON DELETE SET NULL,
            quantity INTEGER NOT NULL CHECK (quantity > 0),
            unit_price NUMERIC(14, 2) NOT NULL,
            tax_rate NUMERIC(5, 2) NOT NULL DEFAULT 19,
            tax_category taxcategory NOT NULL DEFAULT 'GRAVADO_19',
            discount NUMERIC(14, 2) NOT NULL DEFAULT 0,
            subtotal NUMERIC(14, 2) NOT NULL,
            tax NUMERIC(14, 2) NOT NULL,
            total NUMERIC(14, 2) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_quotation_items_quotation_id ON quotation_items (quotation_id);")

    # ── 5. Collection reminders ───────────────────────────────────────────
    op.execute("""
        CREATE TABLE collection_reminders (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            tenant_id UUID NOT NULL REFERENCES tenants(id) ON DELETE CASCADE,
            invoice_id UUID NOT NULL REFERENCES invoices(id) ON DELETE CASCADE,
            customer_id UUID REFERENCES customers(id) ON DELETE SET NULL,
            type collectionremindertype NOT NULL,
            channel reminderchannel NOT NULL DEFAULT 'EMAIL',
            status reminderstatus NOT NULL DEFAULT 'PENDING',
            scheduled_at TIMESTAMPTZ NOT NULL,
            sent_at TIMESTAMPTZ,
            message TEXT,
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_collection_reminders_tenant_id ON collection_reminders (tenant_id);")
    op.execute("CREATE INDEX ix_collection_reminders_invoice_id ON collection_reminders (invoice_id);")
    op.execute("CREATE INDEX ix_collection_reminders_status ON collection_reminders (tenant_id, status);")
    op.execute(
        "CREATE INDEX ix_collection_reminders_scheduled_at ON collection_reminders (scheduled_at);"
    )
    # One automatic reminder per (invoice, type, UTC calendar day); manual ones are free
    op.execute("""
        CREATE UNIQUE INDEX uq_collection_reminders_auto_day ON collection_reminders (
            invoice_id, type, ((scheduled_at AT TIME ZONE 'UTC')::date)
        ) WHERE type <> 'MANUAL';
    """)

    # ── 6. Row level security on tenant-owned tables ──────────────────────
    for table in TENANT_SCOPED_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY;")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY;")
        op.execute(f"""
            CREATE POLICY {table}_tenant_isolation ON {table}
              USING (tenant_id::text = current_setting('app.current_tenant_id', true))
              WITH CHECK (tenant_id::text = current_setting('app.current_tenant_id', true));
        """)


def downgrade() -> None:
    for table in reversed(TENANT_SCOPED_TABLES):
        op.execute(f"DROP POLICY IF EXISTS {table}_tenant_isolation ON {table};")

    op.execute("DROP TABLE IF EXISTS collection_reminders;")
    op.execute("DROP TABLE IF EXISTS quotation_items;")
    op.execute("DROP TABLE IF EXISTS quotations;")
    op.execute("DROP TABLE IF EXISTS invoice_items;")
    op.execute("DROP TABLE IF EXISTS invoices;")
    op.execute("DROP TABLE IF EXISTS products;")
    op.execute("DROP TABLE IF EXISTS customers;")
    op.execute("DROP TABLE IF EXISTS tenants;")

    op.execute("DROP TYPE IF EXISTS reminderstatus;")
    op.execute("DROP TYPE IF EXISTS reminderchannel;")
    op.execute("DROP TYPE IF EXISTS collectionremindertype;")
    op.execute("DROP TYPE IF EXISTS quotationstatus;")
    op.execute("DROP TYPE IF EXISTS invoicesource;")
    op.execute("DROP TYPE IF EXISTS paymentstatus;")
    op.execute("DROP TYPE IF EXISTS invoicestatus;")
    op.execute("DROP TYPE IF EXISTS taxcategory;")
    op.execute("DROP TYPE IF EXISTS tenantstatus;")
