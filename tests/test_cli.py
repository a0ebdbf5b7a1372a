import json
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from ib_valuation.cli import app
from ib_valuation.data import dump_company_data, load_company_data

from tests.fixtures import make_company


runner = CliRunner()


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def invoke_json(self, *args: str) -> dict:
        result = runner.invoke(app, [*args, "--seed", "1", "--json"])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        return json.loads(result.stdout)

    def test_dcf_json(self) -> None:
        payload = self.invoke_json("dcf", "TEST")
        self.assertEqual(payload["model"], "DCF")
        self.assertEqual(payload["valuation"]["symbol"], "TEST")
        self.assertEqual(len(payload["valuation"]["projections"]), 5)

    def test_every_model_command_emits_json(self) -> None:
        commands = {
            ("comps", "TEST"): "Comps",
            ("precedent", "TEST"): "Precedent",
            ("lbo", "TEST"): "LBO",
            ("ma", "ACQ", "TGT"): "M&A",
            ("ipo", "TEST"): "IPO",
            ("credit", "TEST"): "Credit",
            ("sotp", "TEST"): "SOTP",
            ("fcf", "TEST"): "FCF",
            ("three-statement", "TEST"): "ThreeStatement",
            ("operating", "TEST"): "Operating",
            ("sensitivity", "TEST"): "Sensitivity",
            ("ic-memo", "TEST"): "ICMemo",
        }
        for args, model in commands.items():
            with self.subTest(command=args[0]):
                self.assertEqual(self.invoke_json(*args)["model"], model)

    def test_hidden_three_statement_alias(self) -> None:
        self.assertEqual(self.invoke_json("3s", "TEST")["model"], "ThreeStatement")

    def test_seed_makes_output_reproducible(self) -> None:
        self.assertEqual(self.invoke_json("comps", "TEST"), self.invoke_json("comps", "TEST"))

    def test_rich_output(self) -> None:
        result = runner.invoke(app, ["dcf", "TEST", "--seed", "1", "-s"])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertIn("Enterprise value", result.stdout)

    def test_degenerate_wacc_exits_1(self) -> None:
        result = runner.invoke(app, ["dcf", "TEST", "--seed", "1", "--wacc", "0.02", "--terminal", "0.03"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error", result.stdout)

    def test_missing_snapshot_exits_1(self) -> None:
        result = runner.invoke(app, ["dcf", "TEST", "--data", str(self.dir / "missing.json")])
        self.assertEqual(result.exit_code, 1)

    def test_bad_funding_mix_exits_1(self) -> None:
        result = runner.invoke(app, ["ma", "ACQ", "TGT", "--seed", "1", "--cash", "0.5", "--stock", "0.5", "--debt", "0.5"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid inputs", result.stdout)

    def test_snapshot_file_drives_model(self) -> None:
        path = dump_company_data(make_company("FILE", price=50.0), self.dir / "FILE.json")
        result = runner.invoke(app, ["dcf", "FILE", "--data", str(path), "--wacc", "0.10", "--json"])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        valuation = json.loads(result.stdout)["valuation"]
        self.assertEqual(valuation["current_price"], 50.0)
        self.assertEqual(valuation["net_debt"], 20e9)

    def test_sample_writes_snapshot(self) -> None:
        out = self.dir / "snap" / "ABC.json"
        result = runner.invoke(app, ["sample", "abc", "--out", str(out), "--seed", "3", "--periods", "4"])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        data = load_company_data(out)
        self.assertEqual(data.symbol, "ABC")
        self.assertEqual(len(data.income_statements), 4)


if __name__ == "__main__":
    unittest.main()
