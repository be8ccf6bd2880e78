import httpx

from lbscraper import cli
from lbscraper.schemas import DisplayType, HistogramState
from lbscraper.services.steam_client import SteamStatsClient

DIRECTORY_XML = b"""<response>
	<appID>620</appID>
	<leaderboardCount>1</leaderboardCount>
	<leaderboard>
		<url>https://steam.test/lb/1?xml=1</url><lbid>1</lbid>
		<name>coop_besttime</name><display_name>Coop</display_name>
		<entries>2</entries><sortmethod>1</sortmethod><displaytype>3</displaytype>
	</leaderboard>
</response>"""

ENTRIES_XML = b"""<response>
	<totalLeaderboardEntries>2</totalLeaderboardEntries>
	<entryStart>1</entryStart>
	<entryEnd>2</entryEnd>
	<entries>
		<entry><steamid>1</steamid><score>1234</score><rank>1</rank><ugcid>0</ugcid></entry>
		<entry><steamid>2</steamid><score>1260</score><rank>2</rank><ugcid>0</ugcid></entry>
	</entries>
</response>"""


def _fake_steam(monkeypatch, directory_status: int = 200):
	def handler(request: httpx.Request) -> httpx.Response:
		if request.url.path.endswith("/leaderboards/"):
			return httpx.Response(directory_status, content=DIRECTORY_XML)
		return httpx.Response(200, content=ENTRIES_XML)

	def factory(base_url, timeout=30.0):
		return SteamStatsClient(base_url, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

	monkeypatch.setattr(cli, "SteamStatsClient", factory)


def test_format_bucket_labels(leaderboard_factory):
	score = HistogramState.for_leaderboard(leaderboard_factory())
	time = HistogramState.for_leaderboard(leaderboard_factory(display_type=DisplayType.TIME))

	assert cli.format_bucket(score, 7) == "7"
	assert cli.format_bucket(time, 0) == "0-49"
	assert cli.format_bucket(time, 1199) == "59950-59999"


def test_render_lists_only_filled_buckets(leaderboard_factory):
	state = HistogramState.for_leaderboard(leaderboard_factory(total=3))
	state.buckets[4] = 3
	state.requested_entries = 3

	lines = cli.render_histogram(state)

	assert lines[0].endswith("3 of 3 entries requested (complete)")
	assert lines[2:] == ["  4:\t3"]


def test_generate_then_show(tmp_path, monkeypatch, capsys):
	_fake_steam(monkeypatch)
	output = tmp_path / "out"

	code = cli.main(["--output-dir", str(output), "generate", "coop_besttime"])

	assert code == cli.EXIT_OK
	assert (output / "coop_besttime.json").is_file()

	capsys.readouterr()
	assert cli.main(["--output-dir", str(output), "show", "coop_besttime"]) == cli.EXIT_OK
	shown = capsys.readouterr().out
	assert "2 of 2 entries requested (complete)" in shown
	assert "1200-1249:\t1" in shown
	assert "1250-1299:\t1" in shown


def test_list_prints_browse_view(tmp_path, monkeypatch, capsys):
	_fake_steam(monkeypatch)

	code = cli.main(["--output-dir", str(tmp_path), "list"])

	assert code == cli.EXIT_OK
	assert "1:\tCoop (2 entries)" in capsys.readouterr().out


def test_directory_outage_exits_unavailable(tmp_path, monkeypatch):
	_fake_steam(monkeypatch, directory_status=500)

	assert cli.main(["--output-dir", str(tmp_path), "list"]) == cli.EXIT_UNAVAILABLE


def test_unknown_leaderboard_exits_unavailable(tmp_path, monkeypatch):
	_fake_steam(monkeypatch)

	assert cli.main(["--output-dir", str(tmp_path), "generate", "nope"]) == cli.EXIT_UNAVAILABLE


def test_show_without_checkpoint_fails(tmp_path, capsys):
	assert cli.main(["--output-dir", str(tmp_path), "show", "coop_besttime"]) == cli.EXIT_FAILED
