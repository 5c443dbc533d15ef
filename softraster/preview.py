import pygame

from .framebuffer import FrameBuffer


def show(frame: FrameBuffer, title: str = "softraster", fps: int = 30):
    """
    Display a finished frame until the window is closed (or ESC).

    `frame` is expected top-row-first (already flipped for encoding).
    pygame surfaces are indexed [x, y], hence the transpose.
    """
    rgb = frame.data
    if frame.channels == 1:
        rgb = rgb.repeat(3, axis=2)
    elif frame.channels == 4:
        rgb = rgb[:, :, :3]

    pygame.init()
    try:
        screen = pygame.display.set_mode((frame.width, frame.height))
        pygame.display.set_caption(title)
        surface = pygame.surfarray.make_surface(rgb.transpose(1, 0, 2))
        clock = pygame.time.Clock()

        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
            screen.blit(surface, (0, 0))
            pygame.display.flip()
            clock.tick(fps)
    finally:
        pygame.quit()
