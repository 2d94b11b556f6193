# RayCrawler/main.py
import logging
from threading import Thread

import pygame

from dungeon.server import run_server
from dungeon.utils import controller_url, generate_qr_surface
from dungeon.viewer import SCREEN_HEIGHT, SCREEN_WIDTH, run_viewer


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    # Start the interaction server in a background thread
    Thread(target=run_server, daemon=True).start()

    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH, SCREEN_HEIGHT))
    pygame.display.set_caption("RayCrawler")

    # Phones scan this to open the controller page
    url = controller_url()
    qr_surface = generate_qr_surface(url, size=180)
    logging.getLogger(__name__).info("controller at %s", url)

    try:
        run_viewer(screen, qr_surface, url)
    finally:
        pygame.quit()


if __name__ == "__main__":
    main()
