from shipment_client.cli import app

app()
