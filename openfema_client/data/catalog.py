"""
Dataset catalog for OpenFEMA.

Provides the read-only lookups the retrieval engine needs:
- Case-insensitive dataset name resolution (canonical casing + API version)
- The identifier field used to make every row addressable
- Known date fields and field types per dataset

The catalog ships with a built-in registry of commonly used datasets and can
refresh itself from the live ``DataSets`` and ``DataSetFields`` endpoints.
"""

import difflib
import logging
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, Field

from openfema_client.api.errors import UnknownDatasetError, UpstreamError

logger = logging.getLogger(__name__)

# Field types (as reported by DataSetFields) that must be sent as quoted literals
STRING_TYPES = {"string", "text", "uuid", "char", "varchar"}
DATE_TYPES = {"date", "datetime", "timestamp"}


class DatasetMetadata(BaseModel):
    """Metadata for one OpenFEMA dataset."""

    name: str = Field(description="Canonical dataset name, e.g. FimaNfipClaims")
    version: int = Field(description="API version segment, e.g. 2 for /v2/")
    title: str = ""
    identifier_field: str = "id"
    date_fields: List[str] = Field(default_factory=list)
    field_types: Dict[str, str] = Field(default_factory=dict)


class DatasetCatalog:
    """
    Registry of OpenFEMA datasets.

    Lookups are case-insensitive; ``resolve_dataset_id`` returns the casing the
    API expects.
    """

    def __init__(self, datasets: Optional[List[DatasetMetadata]] = None):
        self._datasets: Dict[str, DatasetMetadata] = {}
        if datasets is None:
            self._initialize_catalog()
        else:
            for dataset in datasets:
                self._add_dataset(dataset)

    def _add_dataset(self, dataset: DatasetMetadata) -> None:
        self._datasets[dataset.name.lower()] = dataset

    def _initialize_catalog(self) -> None:
        """Populate the built-in registry."""
        # NFIP (flood insurance)
        self._add_dataset(
            DatasetMetadata(
                name="FimaNfipClaims",
                version=2,
                title="FIMA NFIP Redacted Claims",
                date_fields=[
                    "dateOfLoss",
                    "originalConstructionDate",
                    "originalNBDate",
                    "asOfDate",
                    "lastRefresh",
                ],
                field_types={
                    "countyCode": "string",
                    "censusTract": "string",
                    "censusBlockGroupFips": "string",
                    "state": "string",
                    "reportedZipCode": "string",
                    "reportedCity": "string",
                    "floodZoneCurrent": "string",
                    "ratedFloodZone": "string",
                    "yearOfLoss": "smallint",
                    "numberOfFloorsInTheInsuredBuilding": "smallint",
                    "amountPaidOnBuildingClaim": "decimal",
                    "amountPaidOnContentsClaim": "decimal",
                    "totalBuildingInsuranceCoverage": "integer",
                    "primaryResidenceIndicator": "boolean",
                    "id": "uuid",
                },
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="FimaNfipPolicies",
                version=2,
                title="FIMA NFIP Redacted Policies",
                date_fields=[
                    "policyEffectiveDate",
                    "policyTerminationDate",
                    "originalConstructionDate",
                    "originalNBDate",
                    "cancellationDateOfFloodPolicy",
                ],
                field_types={
                    "countyCode": "string",
                    "censusTract": "string",
                    "propertyState": "string",
                    "reportedZipCode": "string",
                    "ratedFloodZone": "string",
                    "policyCount": "smallint",
                    "totalBuildingInsuranceCoverage": "integer",
                    "id": "uuid",
                },
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="NfipCommunityStatusBook",
                version=1,
                title="NFIP Community Status Book",
                date_fields=["initialFhbmIdentified", "initialFirmIdentified", "currentlyEffectiveMapDate"],
                field_types={"communityIdNumber": "string", "state": "string"},
            )
        )
        # Disaster declarations
        self._add_dataset(
            DatasetMetadata(
                name="DisasterDeclarationsSummaries",
                version=2,
                title="Disaster Declarations Summaries",
                date_fields=[
                    "declarationDate",
                    "incidentBeginDate",
                    "incidentEndDate",
                    "disasterCloseoutDate",
                    "lastIAFilingDate",
                    "lastRefresh",
                ],
                field_types={
                    "femaDeclarationString": "string",
                    "disasterNumber": "smallint",
                    "state": "string",
                    "declarationType": "string",
                    "fyDeclared": "smallint",
                    "incidentType": "string",
                    "fipsStateCode": "string",
                    "fipsCountyCode": "string",
                    "placeCode": "string",
                    "designatedArea": "string",
                    "ihProgramDeclared": "boolean",
                    "iaProgramDeclared": "boolean",
                    "paProgramDeclared": "boolean",
                    "hmProgramDeclared": "boolean",
                    "tribalRequest": "boolean",
                    "id": "uuid",
                },
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="FemaWebDisasterDeclarations",
                version=1,
                title="FEMA Web Disaster Declarations",
                date_fields=["declarationDate", "incidentBeginDate", "incidentEndDate", "closeoutDate"],
                field_types={"disasterNumber": "smallint", "stateCode": "string"},
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="FemaWebDisasterSummaries",
                version=1,
                title="FEMA Web Disaster Summaries",
                field_types={"disasterNumber": "smallint"},
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="FemaWebDeclarationAreas",
                version=1,
                title="FEMA Web Declaration Areas",
                date_fields=["designatedDate", "entryDate", "updateDate", "closeoutDate"],
                field_types={"disasterNumber": "smallint", "stateCode": "string", "placeCode": "string"},
            )
        )
        # Individual and public assistance
        self._add_dataset(
            DatasetMetadata(
                name="HousingAssistanceOwners",
                version=2,
                title="Housing Assistance Program Data - Owners",
                field_types={"disasterNumber": "smallint", "state": "string", "county": "string", "zipCode": "string"},
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="HousingAssistanceRenters",
                version=2,
                title="Housing Assistance Program Data - Renters",
                field_types={"disasterNumber": "smallint", "state": "string", "county": "string", "zipCode": "string"},
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="PublicAssistanceFundedProjectsDetails",
                version=1,
                title="Public Assistance Funded Projects Details",
                date_fields=["declarationDate", "obligatedDate"],
                field_types={
                    "disasterNumber": "smallint",
                    "stateNumberCode": "string",
                    "countyCode": "string",
                    "pwNumber": "integer",
                },
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="PublicAssistanceApplicants",
                version=1,
                title="Public Assistance Applicants",
                field_types={"disasterNumber": "smallint", "applicantId": "string"},
            )
        )
        # Hazard mitigation
        self._add_dataset(
            DatasetMetadata(
                name="HazardMitigationAssistanceProjects",
                version=4,
                title="Hazard Mitigation Assistance Projects",
                date_fields=["dateApproved", "dateClosed", "dateInitiallyApproved"],
                field_types={"projectIdentifier": "string", "stateNumberCode": "string", "countyCode": "string"},
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="HazardMitigationAssistanceMitigatedProperties",
                version=4,
                title="Hazard Mitigation Assistance Mitigated Properties",
                date_fields=["dateApproved", "dateClosed"],
                field_types={"projectIdentifier": "string", "zip": "string", "countyCode": "string"},
            )
        )
        # Reference data
        self._add_dataset(
            DatasetMetadata(
                name="FemaRegions",
                version=2,
                title="FEMA Regions",
                field_types={"regionNumber": "smallint"},
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="DataSets",
                version=1,
                title="OpenFEMA Data Sets",
                date_fields=["depDate", "lastDataSetRefresh", "lastRefresh"],
            )
        )
        self._add_dataset(
            DatasetMetadata(
                name="DataSetFields",
                version=1,
                title="OpenFEMA Data Set Fields",
                field_types={"openFemaDataSet": "string", "name": "string", "datasetVersion": "smallint"},
            )
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def resolve_dataset_id(self, name: str) -> str:
        """
        Resolve a dataset name case-insensitively to its canonical casing.

        Raises:
            UnknownDatasetError: If no dataset matches
        """
        return self.get_dataset(name).name

    def get_dataset(self, name: str) -> DatasetMetadata:
        dataset = self._datasets.get((name or "").strip().lower())
        if dataset is None:
            suggestions = difflib.get_close_matches(
                (name or "").lower(), list(self._datasets), n=3, cutoff=0.6
            )
            raise UnknownDatasetError(
                name, suggestions=[self._datasets[s].name for s in suggestions]
            )
        return dataset

    def list_datasets(self) -> List[DatasetMetadata]:
        return sorted(self._datasets.values(), key=lambda d: d.name)

    def identifier_field(self, name: str) -> str:
        return self.get_dataset(name).identifier_field

    def known_date_fields(self, name: str) -> Set[str]:
        return set(self.get_dataset(name).date_fields)

    def field_types(self, name: str) -> Dict[str, str]:
        return dict(self.get_dataset(name).field_types)

    def url_path(self, name: str) -> str:
        dataset = self.get_dataset(name)
        return f"v{dataset.version}/{dataset.name}"

    # ------------------------------------------------------------------
    # Live metadata
    # ------------------------------------------------------------------

    def refresh(self, client: Any) -> int:
        """
        Merge the live dataset listing from ``v1/DataSets`` into the registry.

        When a dataset is published under several versions the newest wins.
        Known field metadata is kept when a dataset's version does not change.

        Returns:
            Number of datasets in the live listing
        """
        body = client.get_json(
            "v1/DataSets", {"$select": "name,title,version", "$top": 1000}
        )
        entries = body.get("DataSets") if isinstance(body, dict) else None
        if entries is None:
            raise UpstreamError("DataSets response did not contain a DataSets list")

        newest: Dict[str, Dict[str, Any]] = {}
        for entry in entries:
            name = entry.get("name")
            if not name:
                continue
            try:
                version = int(entry.get("version") or 1)
            except (TypeError, ValueError):
                version = 1
            current = newest.get(name.lower())
            if current is None or version > current["version"]:
                newest[name.lower()] = {"name": name, "version": version, "title": entry.get("title") or ""}

        for key, entry in newest.items():
            existing = self._datasets.get(key)
            if existing is not None and existing.version == entry["version"]:
                continue
            self._add_dataset(DatasetMetadata(**entry))

        logger.info(f"Catalog refreshed: {len(newest)} datasets listed by OpenFEMA")
        return len(newest)

    def load_fields(self, client: Any, name: str) -> DatasetMetadata:
        """
        Load field names and types for one dataset from ``v1/DataSetFields``.

        Fields typed as dates are added to the dataset's known date fields.
        """
        dataset = self.get_dataset(name)
        body = client.get_json(
            "v1/DataSetFields",
            {
                "$filter": (
                    f"openFemaDataSet eq '{dataset.name}' "
                    f"and datasetVersion eq {dataset.version}"
                ),
                "$select": "name,type",
                "$top": 1000,
            },
        )
        entries = body.get("DataSetFields") if isinstance(body, dict) else None
        if entries is None:
            raise UpstreamError("DataSetFields response did not contain a DataSetFields list")

        field_types = dict(dataset.field_types)
        date_fields = list(dataset.date_fields)
        for entry in entries:
            field_name = entry.get("name")
            field_type = str(entry.get("type") or "").lower()
            if not field_name:
                continue
            field_types[field_name] = field_type
            if field_type in DATE_TYPES and field_name not in date_fields:
                date_fields.append(field_name)

        updated = dataset.model_copy(
            update={"field_types": field_types, "date_fields": date_fields}
        )
        self._add_dataset(updated)
        logger.info(f"Loaded {len(entries)} field definitions for {dataset.name}")
        return updated


# Global catalog instance
_catalog = None


def get_catalog() -> DatasetCatalog:
    """
    Get the global dataset catalog instance (singleton pattern).

    Returns:
        DatasetCatalog instance
    """
    global _catalog
    if _catalog is None:
        _catalog = DatasetCatalog()
    return _catalog
