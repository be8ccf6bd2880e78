import httpx
import pytest

from lbscraper.core.errors import DirectoryFetchError, PageFetchError
from lbscraper.schemas import DisplayType, SortMethod
from lbscraper.services.steam_client import SteamStatsClient, leaderboards_url

DIRECTORY_XML = b"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<response>
	<appID>620</appID>
	<appFriendlyName>Portal2</appFriendlyName>
	<leaderboardCount>2</leaderboardCount>
	<leaderboard>
		<url><![CDATA[https://steam.test/stats/Portal2/leaderboards/47458/?xml=1]]></url>
		<lbid>47458</lbid>
		<name><![CDATA[challenge_besttime_sp_a1_intro1]]></name>
		<display_name><![CDATA[Container Ride - Time]]></display_name>
		<entries>52000</entries>
		<sortmethod>1</sortmethod>
		<displaytype>3</displaytype>
	</leaderboard>
	<leaderboard>
		<url><![CDATA[https://steam.test/stats/Portal2/leaderboards/47459/?xml=1]]></url>
		<lbid>47459</lbid>
		<name><![CDATA[challenge_portals_sp_a1_intro1]]></name>
		<display_name><![CDATA[Container Ride - Portals]]></display_name>
		<entries>48000</entries>
		<sortmethod>1</sortmethod>
		<displaytype>1</displaytype>
	</leaderboard>
</response>
"""

ENTRIES_XML = b"""<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<response>
	<appID>620</appID>
	<appFriendlyName>Portal2</appFriendlyName>
	<leaderboardID>47458</leaderboardID>
	<totalLeaderboardEntries>52000</totalLeaderboardEntries>
	<entryStart>0</entryStart>
	<entryEnd>2</entryEnd>
	<nextRequestURL><![CDATA[https://steam.test/stats/Portal2/leaderboards/47458/?xml=1&start=3&end=1003]]></nextRequestURL>
	<resultCount>2</resultCount>
	<entries>
		<entry>
			<steamid>76561198012345678</steamid>
			<score>1042</score>
			<rank>1</rank>
			<ugcid>18446744073709551615</ugcid>
			<details><![CDATA[]]></details>
		</entry>
		<entry>
			<steamid>76561198087654321</steamid>
			<score>1050</score>
			<rank>2</rank>
			<ugcid>0</ugcid>
		</entry>
	</entries>
</response>
"""


def _client(handler) -> SteamStatsClient:
	transport = httpx.MockTransport(handler)
	return SteamStatsClient("https://steam.test", client=httpx.AsyncClient(transport=transport))


def test_leaderboards_url():
	assert leaderboards_url("https://steam.test/", "Portal2") == "https://steam.test/stats/Portal2/leaderboards/?xml=1"


@pytest.mark.asyncio
async def test_get_leaderboards_parses_directory():
	seen = []

	def handler(request: httpx.Request) -> httpx.Response:
		seen.append(str(request.url))
		return httpx.Response(200, content=DIRECTORY_XML)

	async with _client(handler) as client:
		directory = await client.get_leaderboards("Portal2")

	assert seen == ["https://steam.test/stats/Portal2/leaderboards/?xml=1"]
	assert directory.app_id == 620
	assert directory.leaderboard_count == 2
	first, second = directory.leaderboards
	assert first.identity == 47458
	assert first.name == "challenge_besttime_sp_a1_intro1"
	assert first.display_name == "Container Ride - Time"
	assert first.total_entries == 52000
	assert first.sort_method is SortMethod.ASCENDING
	assert first.display_type is DisplayType.TIME
	assert second.display_type is DisplayType.SCORE
	assert directory.find("challenge_portals_sp_a1_intro1") == second
	assert directory.find("missing") is None


@pytest.mark.asyncio
async def test_get_leaderboard_entries_parses_page():
	async with _client(lambda request: httpx.Response(200, content=ENTRIES_XML)) as client:
		page = await client.get_leaderboard_entries("https://steam.test/stats/Portal2/leaderboards/47458/?xml=1")

	assert page.total_entries == 52000
	assert page.entry_end == 2
	assert page.next_cursor.endswith("start=3&end=1003")
	assert [entry.score for entry in page.entries] == [1042, 1050]
	assert page.entries[0].identity == 76561198012345678
	assert page.entries[0].supplementary_id == 18446744073709551615


@pytest.mark.asyncio
async def test_http_error_becomes_page_fetch_error():
	async with _client(lambda request: httpx.Response(503)) as client:
		with pytest.raises(PageFetchError) as excinfo:
			await client.get_leaderboard_entries("https://steam.test/page")

	assert excinfo.value.cursor == "https://steam.test/page"


@pytest.mark.asyncio
async def test_transport_error_becomes_page_fetch_error():
	def handler(request: httpx.Request) -> httpx.Response:
		raise httpx.ConnectError("connection refused", request=request)

	async with _client(handler) as client:
		with pytest.raises(PageFetchError):
			await client.get_leaderboard_entries("https://steam.test/page")


@pytest.mark.asyncio
@pytest.mark.parametrize(
	"body",
	[
		b"<response><totalLeaderboardEntries>",
		b"<html><body>Service Unavailable</body></html>",
		b"<response><error><![CDATA[Leaderboard not found]]></error></response>",
		b"<response><entryEnd>5</entryEnd></response>",
	],
)
async def test_malformed_page_becomes_page_fetch_error(body):
	async with _client(lambda request: httpx.Response(200, content=body)) as client:
		with pytest.raises(PageFetchError):
			await client.get_leaderboard_entries("https://steam.test/page")


@pytest.mark.asyncio
async def test_missing_cursor_is_a_page_fetch_error():
	async with _client(lambda request: httpx.Response(200, content=ENTRIES_XML)) as client:
		with pytest.raises(PageFetchError):
			await client.get_leaderboard_entries(None)


@pytest.mark.asyncio
async def test_directory_failure_becomes_directory_fetch_error():
	async with _client(lambda request: httpx.Response(500)) as client:
		with pytest.raises(DirectoryFetchError):
			await client.get_leaderboards("Portal2")
