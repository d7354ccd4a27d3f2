"""Tests unitarios para la línea de comandos."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from store_migrator import cli
from store_migrator.utils.error_handler import ConfigurationException


class TestParser:
    """Tests para build_parser."""

    def test_sheet_job_arguments(self):
        """Debe exigir --file en los trabajos de hoja."""
        args = cli.build_parser().parse_args(["discounts", "--file", "d.xlsx", "--sheet", "Discounts"])

        assert args.job == "discounts"
        assert args.file == Path("d.xlsx")
        assert args.sheet == "Discounts"
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["discounts"])

    def test_maintenance_arguments(self):
        """Debe aceptar --dry-run y filtros en el borrado de definiciones."""
        args = cli.build_parser().parse_args(
            ["delete-metafield-definitions", "--namespace", "magento", "--limit", "5", "--dry-run"]
        )

        assert args.dry_run is True
        assert args.namespace == "magento"
        assert args.limit == 5
        assert args.keep_values is False


class TestRunJob:
    """Tests para run_job."""

    @pytest.mark.asyncio
    async def test_dispatches_sheet_job(self):
        """Debe llamar al trabajo de hoja con la ruta y el nombre del archivo."""
        job = AsyncMock(return_value={"ok": True})
        args = cli.build_parser().parse_args(["customers", "--file", "data/customers.xlsx"])

        with patch.dict(cli.SHEET_JOBS, {"customers": job}), patch.object(cli, "validate_required_settings"):
            summary = await cli.run_job(args)

        assert summary == {"ok": True}
        job.assert_awaited_once_with(Path("data/customers.xlsx"), filename="customers.xlsx", sheet_name=None)

    @pytest.mark.asyncio
    async def test_dispatches_order_cleanup(self):
        """Debe pasar limit y dry_run al borrado de pedidos."""
        args = cli.build_parser().parse_args(["delete-orders", "--limit", "2", "--dry-run"])

        with patch.object(cli, "delete_orders", new=AsyncMock(return_value={})) as job, patch.object(
            cli, "validate_required_settings"
        ):
            await cli.run_job(args)

        job.assert_awaited_once_with(limit=2, dry_run=True)


class TestMain:
    """Tests para main y el resumen."""

    def test_summary_rows(self):
        """Debe aplanar diccionarios y mostrar las listas como cantidad."""
        rows = cli.summary_rows({"ok": True, "reportPath": None, "errors": {"total": 1, "items": []}, "failed": [1, 2]})

        assert rows == [["ok", "True"], ["reportPath", ""], ["errors.total", "1"], ["failed", "2 item(s)"]]

    def test_exit_codes(self):
        """Debe devolver 1 si el resumen trae errores o la configuración falta."""
        with patch.object(cli, "setup_logging"), patch.object(
            cli, "run_job", new=AsyncMock(return_value={"ok": False, "failedCount": 1})
        ):
            assert cli.main(["orders", "--limit", "1"]) == 1

        with patch.object(cli, "setup_logging"), patch.object(
            cli, "run_job", new=AsyncMock(return_value={"ok": True})
        ):
            assert cli.main(["collections-sync"]) == 0

        missing = ConfigurationException("Missing env vars: SOURCE_SHOP", setting="SOURCE_SHOP")
        with patch.object(cli, "setup_logging"), patch.object(cli, "run_job", new=AsyncMock(side_effect=missing)):
            assert cli.main(["orders"]) == 1


class TestCompaniesSync:
    """Tests para el subcomando companies-sync."""

    @pytest.mark.asyncio
    async def test_dispatches_company_ids(self):
        """Debe validar ambas tiendas y pasar los IDs y el archivo."""
        args = cli.build_parser().parse_args(["companies-sync", "--ids", "101", "gid://shopify/Company/202"])

        job = AsyncMock(return_value={"ok": True})
        with patch.object(cli, "sync_companies_store_to_store", new=job), patch.object(
            cli, "validate_required_settings"
        ) as validate:
            await cli.run_job(args)

        validate.assert_called_once_with("both")
        job.assert_awaited_once_with(company_ids=["101", "gid://shopify/Company/202"], ids_file=None)

    def test_ids_file_argument(self):
        """Sin --ids debe quedar el archivo de IDs indicado."""
        args = cli.build_parser().parse_args(["companies-sync", "--ids-file", "b2b.json"])

        assert args.ids is None
        assert args.ids_file == "b2b.json"
