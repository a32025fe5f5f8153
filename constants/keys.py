class StateKeys:
    """Keys for data stored in ``st.session_state``."""

    VENDOR_WIZARD = "vendor_intake.wizard"
    VENDOR_WIZARD_SESSION_ID = "vendor_intake.session_id"


class VendorPaths:
    """Dot-notation paths of the vendor intake document."""

    COMPANY_NAME = "companyName"
    COMPANY_TYPE = "companyType"
    COMPANY_TYPE_OTHER = "companyTypeOther"
    LOCATION = "location"
    LOCATION_STATE = "location.state"
    LOCATION_COUNTRY = "location.country"
    LOCATION_COUNTRY_OTHER = "location.countryOther"
    WEBSITE = "website"
    ADDRESS = "address"
    PRODUCTS = "products"
    INTEGRATION_CATEGORIES = "integrationCategories"
    OTHER_INTEGRATIONS_BY_CATEGORY = "otherIntegrationsByCategory"
    OTHER_INTEGRATIONS = "otherIntegrations"
    INTEGRATIONS = "integrations"
    PRIMARY_CONTACT = "primaryContact"
    PRIMARY_CONTACT_NAME = "primaryContact.name"
    PRIMARY_CONTACT_TITLE = "primaryContact.title"
    PRIMARY_CONTACT_EMAIL = "primaryContact.email"
    PRIMARY_CONTACT_PHONE = "primaryContact.phone"
    COMPLIANCE_CERTIFICATIONS = "complianceCertifications"
    COMPLIANCE_CERTIFICATIONS_OTHER = "complianceCertificationsOther"
    SUBMIT = "submit"
