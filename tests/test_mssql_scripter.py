import unittest

from sql_schema_compare.core.model import (
    ForeignKey,
    MicrosoftSqlColumn,
    MicrosoftSqlDataType,
    MicrosoftSqlIndex,
    MicrosoftSqlIndexType,
    ReferentialAction,
    Sequence,
    StoredProcedure,
    Table,
    View,
)
from sql_schema_compare.core.scripter_factory import create_scripter


def customer_table(**changes):
    values = dict(
        name="Customer",
        schema="dbo",
        columns=(
            MicrosoftSqlColumn(name="Id", data_type="int", is_nullable=False, is_identity=True, ordinal_position=1),
            MicrosoftSqlColumn(name="Name", data_type="nvarchar", character_max_length=100, ordinal_position=2),
        ),
        indexes=(
            MicrosoftSqlIndex(
                name="PK_Customer", schema="dbo", table_schema="dbo", table_name="Customer",
                column_name="Id", ordinal_position=1, is_primary_key=True, is_unique=True,
                type=MicrosoftSqlIndexType.CLUSTERED),
        ),
    )
    values.update(changes)
    return Table(**values)


def order_foreign_key():
    return ForeignKey(
        name="FK_Order_Customer", schema="dbo", table_schema="dbo", table_name="Order",
        column_name="CustomerId", ordinal_position=1,
        referenced_table_schema="dbo", referenced_table_name="Customer", referenced_column_name="Id",
        delete_rule=ReferentialAction.CASCADE)


class MicrosoftSqlTableTests(unittest.TestCase):
    def setUp(self):
        self.scripter = create_scripter("mssql")

    def test_table_definition(self):
        self.assertEqual(
            self.scripter.generate_table_definition(customer_table()),
            "CREATE TABLE [dbo].[Customer](\n"
            "    [Id] [int] IDENTITY(1,1) NOT NULL,\n"
            "    [Name] [nvarchar](100) NULL\n"
            ")\nGO\n",
        )

    def test_primary_key(self):
        self.assertEqual(
            self.scripter.generate_table_keys_and_indexes(customer_table()),
            "ALTER TABLE [dbo].[Customer]\n"
            "ADD CONSTRAINT [PK_Customer] PRIMARY KEY CLUSTERED([Id])\n"
            "GO\n\n",
        )

    def test_clustered_indexes_come_first(self):
        indexes = (
            MicrosoftSqlIndex(name="AX_Name", schema="dbo", column_name="Name", ordinal_position=1,
                              filter_definition="([Name] IS NOT NULL)"),
            MicrosoftSqlIndex(name="ZX_Id", schema="dbo", column_name="Id", ordinal_position=1,
                              type=MicrosoftSqlIndexType.CLUSTERED, is_unique=True),
        )
        script = self.scripter.generate_table_keys_and_indexes(customer_table(indexes=indexes))

        self.assertIn("CREATE UNIQUE CLUSTERED INDEX [ZX_Id] ON [dbo].[Customer]([Id])\nGO\n", script)
        self.assertIn("CREATE INDEX [AX_Name] ON [dbo].[Customer]([Name])\n    WHERE ([Name] IS NOT NULL)\nGO\n",
                      script)
        self.assertLess(script.index("[ZX_Id]"), script.index("[AX_Name]"))

    def test_foreign_key(self):
        table = Table(
            name="Order", schema="dbo",
            columns=(MicrosoftSqlColumn(name="CustomerId", data_type="int", is_nullable=False),),
            foreign_keys=(order_foreign_key(),),
        )
        self.assertEqual(
            self.scripter.generate_table_foreign_keys(table),
            "ALTER TABLE [dbo].[Order] WITH CHECK ADD CONSTRAINT [FK_Order_Customer] FOREIGN KEY([CustomerId])\n"
            "REFERENCES [dbo].[Customer] ([Id])\n"
            "ON DELETE CASCADE\n"
            "ON UPDATE NO ACTION\n"
            "GO\n\n"
            "ALTER TABLE [dbo].[Order] CHECK CONSTRAINT [FK_Order_Customer]\n"
            "GO\n\n",
        )

    def test_drop_table_drops_referencing_foreign_keys_first(self):
        table = customer_table(referencing_foreign_keys=(order_foreign_key(),))
        self.assertEqual(
            self.scripter.generate_drop_table_script(table),
            "ALTER TABLE [dbo].[Order] DROP CONSTRAINT [FK_Order_Customer];\nGO\n"
            "DROP TABLE [dbo].[Customer];\nGO\n",
        )

    def test_alter_column_type(self):
        source = customer_table(columns=(
            customer_table().columns[0],
            MicrosoftSqlColumn(name="Name", data_type="nvarchar", character_max_length=200, ordinal_position=2),
        ))
        self.assertEqual(
            self.scripter.generate_alter_table_script(source, customer_table()),
            "ALTER TABLE [dbo].[Customer] ALTER COLUMN [Name] [nvarchar](200) NULL\nGO\n",
        )

    def test_alter_existing_default_is_placeholder(self):
        def with_default(default):
            return customer_table(columns=(
                customer_table().columns[0],
                MicrosoftSqlColumn(name="Name", data_type="nvarchar", character_max_length=100,
                                   ordinal_position=2, column_default=default),
            ))

        script = self.scripter.generate_alter_table_script(with_default("('b')"), with_default("('a')"))
        self.assertEqual(script, "TODO: Alter Column Default Script\n")

        script = self.scripter.generate_alter_table_script(with_default("('b')"), with_default(None))
        self.assertEqual(script, "ALTER TABLE [dbo].[Customer] ADD DEFAULT ('b') FOR [Name]\nGO\n")

    def test_primary_key_rebuilt_when_its_column_changes(self):
        source = customer_table(columns=(
            MicrosoftSqlColumn(name="Id", data_type="bigint", is_nullable=False, is_identity=True, ordinal_position=1),
            customer_table().columns[1],
        ))
        script = self.scripter.generate_alter_table_script(source, customer_table())

        drop = script.index("ALTER TABLE [dbo].[Customer] DROP CONSTRAINT [PK_Customer];")
        alter = script.index("ALTER COLUMN [Id] [bigint] NOT NULL")
        add = script.index("ADD CONSTRAINT [PK_Customer] PRIMARY KEY CLUSTERED([Id])")
        self.assertLess(drop, alter)
        self.assertLess(alter, add)

    def test_primary_key_rebuild_drops_and_restores_referencing_foreign_keys(self):
        inbound = (order_foreign_key(),)
        target = customer_table(referencing_foreign_keys=inbound)
        source = customer_table(referencing_foreign_keys=inbound, columns=(
            MicrosoftSqlColumn(name="Id", data_type="bigint", is_nullable=False, is_identity=True, ordinal_position=1),
            customer_table().columns[1],
        ))
        script = self.scripter.generate_alter_table_script(source, target)

        steps = [
            "ALTER TABLE [dbo].[Order] DROP CONSTRAINT [FK_Order_Customer];",
            "ALTER TABLE [dbo].[Customer] DROP CONSTRAINT [PK_Customer];",
            "ALTER COLUMN [Id] [bigint] NOT NULL",
            "ADD CONSTRAINT [PK_Customer] PRIMARY KEY CLUSTERED([Id])",
            "ALTER TABLE [dbo].[Order] WITH CHECK ADD CONSTRAINT [FK_Order_Customer] FOREIGN KEY([CustomerId])",
        ]
        positions = [script.index(step) for step in steps]
        self.assertEqual(positions, sorted(positions))

        without_foreign_keys = self.scripter.generate_alter_table_script(source, target, include_foreign_keys=False)
        self.assertNotIn("FK_Order_Customer", without_foreign_keys)
        drops, adds = self.scripter.get_alter_table_foreign_keys(source, target)
        self.assertEqual([fk.name for fk in drops], ["FK_Order_Customer"])
        self.assertEqual([fk.name for fk in adds], ["FK_Order_Customer"])

    def test_dropped_column_is_flagged(self):
        target = customer_table(columns=customer_table().columns + (
            MicrosoftSqlColumn(name="Legacy", data_type="int", ordinal_position=3),
        ))
        script = self.scripter.generate_alter_table_script(customer_table(), target)
        self.assertEqual(
            script,
            "-- WARNING: Dropping column [Legacy] from [dbo].[Customer] may cause data loss.\n"
            "ALTER TABLE [dbo].[Customer] DROP COLUMN [Legacy]\nGO\n",
        )

    def test_identical_tables_need_no_script(self):
        self.assertEqual(self.scripter.generate_alter_table_script(customer_table(), customer_table()), "")


class MicrosoftSqlProgrammabilityTests(unittest.TestCase):
    def setUp(self):
        self.scripter = create_scripter("mssql")

    def test_alter_view_rewrites_header(self):
        source = View(name="V", schema="dbo", view_definition="CREATE VIEW dbo.V AS SELECT 2 AS x")
        target = View(name="V", schema="dbo", view_definition="CREATE VIEW dbo.V AS SELECT 1 AS x")
        self.assertEqual(
            self.scripter.generate_alter_view_script(source, target),
            "ALTER VIEW dbo.V AS SELECT 2 AS x\nGO\n",
        )

    def test_alter_procedure_keeps_leading_comments(self):
        source = StoredProcedure(name="P", schema="dbo",
                                 definition="-- returns one\ncreate proc dbo.P AS SELECT 1\n")
        target = StoredProcedure(name="P", schema="dbo", definition="CREATE PROCEDURE dbo.P AS SELECT 0\n")
        self.assertEqual(
            self.scripter.generate_alter_stored_procedure_script(source, target),
            "-- returns one\nALTER proc dbo.P AS SELECT 1\nGO\n",
        )

    def test_unrecognized_header_falls_back_to_drop_and_create(self):
        source = View(name="V", schema="dbo", view_definition="SELECT 2 AS x")
        target = View(name="V", schema="dbo", view_definition="SELECT 1 AS x")
        self.assertEqual(
            self.scripter.generate_alter_view_script(source, target),
            "DROP VIEW [dbo].[V];\nGO\n\nSELECT 2 AS x\nGO\n\n",
        )

    def test_sequence(self):
        sequence = Sequence(name="Seq", schema="dbo", data_type="bigint", max_value=1000, is_cycling=True)
        self.assertEqual(
            self.scripter.generate_create_sequence_script(sequence),
            "CREATE SEQUENCE [dbo].[Seq]\n"
            "    AS bigint\n"
            "    START WITH 1\n"
            "    INCREMENT BY 1\n"
            "    NO MINVALUE\n"
            "    MAXVALUE 1000\n"
            "    CYCLE\n"
            "GO\n",
        )

    def test_alias_type(self):
        data_type = MicrosoftSqlDataType(
            name="Phone", schema="dbo", system_type_name="varchar", max_length=20, is_nullable=False)
        self.assertEqual(
            self.scripter.generate_create_type_script(data_type),
            "CREATE TYPE [dbo].[Phone]\n    FROM varchar(20) NOT NULL\nGO\n",
        )
        self.assertEqual(self.scripter.generate_drop_type_script(data_type), "DROP TYPE [dbo].[Phone];\nGO\n")
