"""
Integration tests for Flask CLI commands.
"""
from pos_ledger.models import AppUser, ProductVariant


class TestCliCommands:
    """init-db, seed-demo and low-stock."""

    def test_init_db(self, runner):
        result = runner.invoke(args=['init-db'])
        assert result.exit_code == 0
        assert 'Database initialized' in result.output

    def test_init_db_drop_requires_confirmation(self, runner, database, seller):
        result = runner.invoke(args=['init-db', '--drop'], input='n\n')
        assert result.exit_code != 0
        with database.session() as session:
            assert session.query(AppUser).count() == 1

        result = runner.invoke(args=['init-db', '--drop'], input='y\n')
        assert result.exit_code == 0
        with database.session() as session:
            assert session.query(AppUser).count() == 0

    def test_seed_demo_is_idempotent(self, runner, database):
        result = runner.invoke(args=['seed-demo'])
        assert result.exit_code == 0, result.output
        assert '5 new variant(s)' in result.output

        result = runner.invoke(args=['seed-demo'])
        assert result.exit_code == 0
        assert 'Seller exists' in result.output
        assert '0 new variant(s)' in result.output

        with database.session() as session:
            assert session.query(ProductVariant).count() == 5
            assert session.query(AppUser).filter_by(username='seller').count() == 1

    def test_low_stock(self, runner):
        result = runner.invoke(args=['low-stock'])
        assert result.exit_code == 0
        assert 'No variants below minimum stock' in result.output

        runner.invoke(args=['seed-demo'])
        result = runner.invoke(args=['low-stock'])
        assert result.exit_code == 0
        assert '3 variant(s) low on stock' in result.output
        assert 'Measuring Tape - 8 m' in result.output
        assert 'Claw Hammer - 500g' not in result.output
