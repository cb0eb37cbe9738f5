"""Application constants."""

USER_AGENT = "pdok-geoencoder/1.0 (+https://api.pdok.nl)"
PDOK_FREE_SEARCH_URL = "https://api.pdok.nl/bzk/locatieserver/search/v3_1/free"

ZIP_CANDIDATES = ("zip", "pc", "pc6", "postal")
HOUSE_NUMBER_CANDIDATES = ("hn", "huisnummer", "house_number", "number", "nmbr")

CANDIDATE_SOURCE = "BAG"
CANDIDATE_TYPE = "adres"
GEOGRAPHIC_POINT_FIELD = "centroide_ll"
PROJECTED_POINT_FIELD = "centroide_rd"
RANKING_POLICIES = ("first", "score")

DEFAULT_LATITUDE = "lat"
DEFAULT_LONGITUDE = "lon"
DEFAULT_CHECKPOINT_EVERY = 1000

# Every attribute of a Locatieserver address document except the two centroids.
PDOK_EXTENDED_ATTRIBUTES = (
    "bron",
    "woonplaatscode",
    "type",
    "woonplaatsnaam",
    "wijkcode",
    "huis_nlt",
    "openbareruimtetype",
    "buurtnaam",
    "gemeentecode",
    "rdf_seealso",
    "weergavenaam",
    "straatnaam_verkort",
    "id",
    "gekoppeld_perceel",
    "gemeentenaam",
    "buurtcode",
    "wijknaam",
    "identificatie",
    "openbareruimte_id",
    "waterschapsnaam",
    "provinciecode",
    "postcode",
    "provincienaam",
    "nummeraanduiding_id",
    "waterschapscode",
    "adresseerbaarobject_id",
    "huisnummer",
    "provincieafkorting",
    "straatnaam",
    "score",
)

EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "event",
    "status",
    "line_number",
    "zip",
    "house_number",
    "rows_in",
    "rows_out",
    "error_code",
    "duration_ms",
    "output_path",
    "message",
)
