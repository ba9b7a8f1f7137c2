"""Patient, contact and ancillary records API with an Azure AD OAuth proxy."""
