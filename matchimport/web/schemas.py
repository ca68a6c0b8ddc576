"""Response payloads for the bulk import API.

Decimal values are dumped as JSON numbers.
"""

from __future__ import annotations

from marshmallow import Schema, fields


class ResolvedPlayerSchema(Schema):
    passport_code = fields.Str(data_key="passportCode")
    player_id = fields.Int(data_key="playerId")
    display_name = fields.Str(data_key="displayName")
    current_points = fields.Float(data_key="currentPoints")
    gender = fields.Str(allow_none=True)


class PointsCalculationSchema(Schema):
    can_calculate = fields.Bool(data_key="canCalculate")
    reason = fields.Str(allow_none=True)
    multiplier = fields.Float()
    player_points = fields.Dict(keys=fields.Str(), values=fields.Float(), data_key="playerPoints")
    player_pickle_points = fields.Dict(keys=fields.Str(), values=fields.Int(), data_key="playerPicklePoints")
    total_points = fields.Float(data_key="totalPoints", allow_none=True)
    pickle_points_awarded = fields.Int(data_key="picklePointsAwarded", allow_none=True)
    cross_gender_bonus = fields.Bool(data_key="crossGenderBonus")


class MatchAnalysisSchema(Schema):
    """One analyzed row: the sheet values flattened next to its points."""

    tab_name = fields.Str(attribute="row.tab_name", data_key="tabName")
    row_number = fields.Int(attribute="row.row_number", data_key="rowNumber")
    match_type = fields.Method("get_match_type", data_key="matchType")
    player1 = fields.Str(attribute="row.player1")
    player2 = fields.Str(attribute="row.player2")
    player3 = fields.Str(attribute="row.player3", allow_none=True)
    player4 = fields.Str(attribute="row.player4", allow_none=True)
    team1_score = fields.Int(attribute="row.team1_score", data_key="team1Score", allow_none=True)
    team2_score = fields.Int(attribute="row.team2_score", data_key="team2Score", allow_none=True)
    winner = fields.Str(attribute="calculation.winner", allow_none=True)
    match_date = fields.Str(attribute="row.match_date", data_key="matchDate", allow_none=True)
    location = fields.Str(attribute="row.location")
    notes = fields.Str(attribute="row.notes")
    game_details = fields.Str(attribute="row.game_details", data_key="gameDetails")
    calculation = fields.Nested(PointsCalculationSchema, data_key="pointsCalculation")

    def get_match_type(self, item) -> str:
        return item.row.match_type.capitalize()


class TabSummarySchema(Schema):
    tab_name = fields.Str(data_key="tabName")
    match_count = fields.Int(data_key="matchCount")
    singles_count = fields.Int(data_key="singlesCount")
    doubles_count = fields.Int(data_key="doublesCount")
    multiplier = fields.Float()


class AnalysisSummarySchema(Schema):
    total_tabs = fields.Int(data_key="totalTabs")
    total_matches = fields.Int(data_key="totalMatches")
    singles_matches = fields.Int(data_key="singlesMatches")
    doubles_matches = fields.Int(data_key="doublesMatches")
    unique_players = fields.Int(data_key="uniquePlayers")
    matched_players = fields.Int(data_key="matchedPlayers")
    unmatched_players = fields.Int(data_key="unmatchedPlayers")
    total_ranking_points_to_award = fields.Float(data_key="totalRankingPointsToAward")
    total_pickle_points_to_award = fields.Int(data_key="totalPicklePointsToAward")


class AnalysisResultSchema(Schema):
    success = fields.Bool()
    analysis_mode = fields.Bool(data_key="analysisMode")
    file_name = fields.Str(data_key="fileName")
    summary = fields.Nested(AnalysisSummarySchema)
    tab_breakdown = fields.List(fields.Nested(TabSummarySchema), data_key="tabBreakdown")
    player_matching = fields.Method("get_player_matching", data_key="playerMatching")
    matches = fields.List(fields.Nested(MatchAnalysisSchema))
    warnings = fields.List(fields.Str())
    ready_to_import = fields.Bool(data_key="readyToImport")

    def get_player_matching(self, result) -> dict[str, object]:
        return {
            "matched": ResolvedPlayerSchema(many=True).dump(result.matched),
            "unmatched": list(result.unmatched),
            "unmatchedCount": result.unmatched_count,
        }


class FailureSchema(Schema):
    success = fields.Bool()
    error = fields.Str()
    message = fields.Str()


class CommitReportSchema(Schema):
    success = fields.Bool()
    file_name = fields.Str(data_key="fileName")
    results = fields.Method("get_results")
    tournaments_created = fields.List(fields.Str(), data_key="tournamentsCreated")
    total_points_awarded = fields.Float(data_key="totalPointsAwarded")
    warnings = fields.List(fields.Str())

    def get_results(self, report) -> dict[str, object]:
        return {
            "successful": report.successful,
            "failed": report.failed,
            "skipped": report.skipped,
            "errors": list(report.errors),
        }
